import numpy as np
import pandas as pd
import pytest
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from xgboost import XGBRFClassifier

from enterocast.model_factory import (
    PredictionShapeError,
    fit_classifier,
    fit_regressor,
    get_feature_importance,
    get_model,
    predict_positive_probability,
    predict_values,
)


class FakeClassifier:
    def __init__(self, classes, output):
        self.classes_ = np.asarray(classes)
        self._output = output

    def predict_proba(self, X):
        return self._output


class FakeRegressor:
    def __init__(self, output):
        self._output = output

    def predict(self, X):
        return self._output


@pytest.fixture
def X():
    return pd.DataFrame({"a": [0.0, 1.0, 2.0]}, index=[10, 11, 12])


def test_positive_column_is_located_through_classes(X):
    output = np.array([[0.9, 0.1], [0.3, 0.7], [0.5, 0.5]])
    model = FakeClassifier(classes=[1, 0], output=output)

    result = predict_positive_probability(model, X)

    assert result.name == "positive_class_probability"
    assert result.tolist() == [0.9, 0.3, 0.5]
    assert result.index.tolist() == [10, 11, 12]


@pytest.mark.parametrize(
    "classes, output",
    [
        ([0, 2], np.array([[0.5, 0.5]] * 3)),
        ([0, 1], np.array([0.1, 0.2, 0.3])),
        ([0, 1], np.array([[0.9, 0.1, 0.0]] * 3)),
        ([0, 1], np.array([[0.9, 0.1]] * 2)),
        ([0, 1], np.array([["a", "b"]] * 3)),
    ],
    ids=["no-positive-class", "vector", "three-columns", "short", "non-numeric"],
)
def test_unrecognised_probability_output_fails_fast(X, classes, output):
    with pytest.raises(PredictionShapeError):
        predict_positive_probability(FakeClassifier(classes, output), X)


def test_single_class_model_has_zero_positive_probability(X):
    model = FakeClassifier(classes=[0], output=np.ones((3, 1)))

    result = predict_positive_probability(model, X)

    assert result.name == "positive_class_probability"
    assert result.tolist() == [0.0, 0.0, 0.0]
    assert result.index.tolist() == [10, 11, 12]


def test_forest_fitted_without_exceedances_predicts_zero(X, small_forests):
    model = fit_classifier(X, pd.Series([False, False, False], index=X.index))
    assert predict_positive_probability(model, X).tolist() == [0.0, 0.0, 0.0]


def test_model_without_classes_is_rejected(X):
    model = FakeRegressor(np.zeros(3))
    with pytest.raises(PredictionShapeError, match="classes_"):
        predict_positive_probability(model, X)


def test_predict_values_contract(X):
    result = predict_values(FakeRegressor(np.array([1, 2, 3])), X)
    assert result.name == "value"
    assert result.tolist() == [1.0, 2.0, 3.0]

    column = predict_values(FakeRegressor(np.array([[1.0], [2.0], [3.0]])), X)
    assert column.tolist() == [1.0, 2.0, 3.0]


@pytest.mark.parametrize(
    "output",
    [np.zeros((3, 2)), np.array(["x", "y", "z"]), np.zeros(2)],
    ids=["matrix", "strings", "short"],
)
def test_unrecognised_regression_output_fails_fast(X, output):
    with pytest.raises(PredictionShapeError):
        predict_values(FakeRegressor(output), X)


def test_get_model_dispatch(small_forests):
    assert isinstance(get_model("regression", "rf"), RandomForestRegressor)
    assert isinstance(get_model("classification", "rf"), RandomForestClassifier)
    assert isinstance(get_model("classification", "xgboost"), XGBRFClassifier)
    with pytest.raises(ValueError, match="Unknown model type"):
        get_model("regression", "svm")
    with pytest.raises(ValueError, match="Unknown task"):
        get_model("ranking", "rf")


def test_seeded_forests_are_reproducible(small_forests):
    rng = np.random.default_rng(3)
    X_train = pd.DataFrame(rng.normal(size=(60, 4)), columns=list("abcd"))
    y_cls = pd.Series(X_train["a"] + rng.normal(0, 0.5, 60) > 0)
    y_reg = X_train["b"] * 3 + rng.normal(0, 0.1, 60)

    first = predict_positive_probability(fit_classifier(X_train, y_cls), X_train)
    second = predict_positive_probability(fit_classifier(X_train, y_cls), X_train)
    pd.testing.assert_series_equal(first, second)
    assert first.between(0, 1).all()

    reg_a = predict_values(fit_regressor(X_train, y_reg), X_train)
    reg_b = predict_values(fit_regressor(X_train, y_reg), X_train)
    pd.testing.assert_series_equal(reg_a, reg_b)


def test_feature_importance_is_sorted(small_forests):
    rng = np.random.default_rng(5)
    X_train = pd.DataFrame(rng.normal(size=(80, 3)), columns=["signal", "noise1", "noise2"])
    y = X_train["signal"] * 5
    model = fit_regressor(X_train, y)

    importance = get_feature_importance(model, X_train.columns)
    assert importance.iloc[0]["feature"] == "signal"
    assert importance["importance"].is_monotonic_decreasing
