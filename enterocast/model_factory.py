"""
Model factory for Enterocast.

Builds seeded random-forest regressors and classifiers and defines the
prediction contract the evaluator relies on:

- ``predict_values`` -> Series named ``value``
- ``predict_positive_probability`` -> Series named ``positive_class_probability``

Anything a model returns that does not fit that contract raises
``PredictionShapeError`` instead of being coerced.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from xgboost import XGBRFClassifier, XGBRFRegressor

import config
from .logging_config import get_logger

logger = get_logger(__name__)

VALUE_COLUMN = "value"
POSITIVE_PROBABILITY_COLUMN = "positive_class_probability"


class PredictionShapeError(ValueError):
    """Model output does not match the prediction contract."""


def _model_type(model_type: Optional[str]) -> str:
    model_type = model_type or getattr(config, "FORECAST_MODEL", "rf")
    if model_type in ("rf", "random_forest"):
        return "rf"
    if model_type in ("xgboost", "xgb"):
        return "xgboost"
    raise ValueError(f"Unknown model type: {model_type}. Supported: 'rf', 'xgboost'")


def build_rf_regressor(param_overrides: Optional[dict] = None) -> RandomForestRegressor:
    """
    Build a Random Forest regressor with config defaults.
    """
    params = {**config.RF_REGRESSION_PARAMS, **(param_overrides or {})}
    params["n_jobs"] = 1
    return RandomForestRegressor(**params, random_state=config.RANDOM_SEED)


def build_rf_classifier(param_overrides: Optional[dict] = None) -> RandomForestClassifier:
    """
    Build a Random Forest classifier with config defaults.
    """
    params = {**config.RF_CLASSIFICATION_PARAMS, **(param_overrides or {})}
    params["n_jobs"] = 1
    return RandomForestClassifier(**params, random_state=config.RANDOM_SEED)


def build_xgbrf_regressor(param_overrides: Optional[dict] = None) -> XGBRFRegressor:
    """
    Build an XGBoost random-forest regressor with config defaults.
    """
    params = {**config.XGBRF_PARAMS, **(param_overrides or {})}
    params["n_jobs"] = 1
    return XGBRFRegressor(**params, random_state=config.RANDOM_SEED, verbosity=0)


def build_xgbrf_classifier(param_overrides: Optional[dict] = None) -> XGBRFClassifier:
    """
    Build an XGBoost random-forest classifier with config defaults.
    """
    params = {**config.XGBRF_PARAMS, **(param_overrides or {})}
    params["n_jobs"] = 1
    return XGBRFClassifier(**params, random_state=config.RANDOM_SEED, verbosity=0)


def get_model(task: str, model_type: Optional[str] = None, params_override: Optional[dict] = None):
    model_type = _model_type(model_type)
    if task == "regression":
        if model_type == "xgboost":
            return build_xgbrf_regressor(params_override)
        return build_rf_regressor(params_override)
    if task == "classification":
        if model_type == "xgboost":
            return build_xgbrf_classifier(params_override)
        return build_rf_classifier(params_override)
    raise ValueError(f"Unknown task: {task}. Must be 'regression' or 'classification'")


def fit_regressor(X_train: pd.DataFrame, y_train: pd.Series, model_type: Optional[str] = None):
    """Fit a regression ensemble on already-encoded features."""
    model = get_model("regression", model_type)
    logger.info(f"Fitting {type(model).__name__} on {X_train.shape[0]} rows, {X_train.shape[1]} features")
    model.fit(X_train, np.asarray(y_train, dtype=float))
    return model


def fit_classifier(X_train: pd.DataFrame, y_train: pd.Series, model_type: Optional[str] = None):
    """
    Fit a probability classifier on already-encoded features.

    Labels are cast to 0/1 so the positive class is always ``1``.
    """
    model = get_model("classification", model_type)
    y = np.asarray(y_train).astype(int)
    if np.unique(y).size < 2:
        logger.warning("Training labels contain a single class; positive probability will be constant")
    logger.info(f"Fitting {type(model).__name__} on {X_train.shape[0]} rows, {X_train.shape[1]} features")
    model.fit(X_train, y)
    return model


def _check_length(values: np.ndarray, X) -> None:
    if values.shape[0] != len(X):
        raise PredictionShapeError(
            f"Model returned {values.shape[0]} predictions for {len(X)} rows"
        )


def predict_values(model, X: pd.DataFrame) -> pd.Series:
    """Continuous predictions as a Series named ``value``."""
    raw = np.asarray(model.predict(X))
    if raw.ndim == 2 and raw.shape[1] == 1:
        raw = raw[:, 0]
    if raw.ndim != 1 or not np.issubdtype(raw.dtype, np.number):
        raise PredictionShapeError(
            f"Regression output must be a numeric vector, got shape {raw.shape} dtype {raw.dtype}"
        )
    _check_length(raw, X)
    return pd.Series(raw.astype(float), index=X.index, name=VALUE_COLUMN)


def predict_positive_probability(model, X: pd.DataFrame, positive_label=1) -> pd.Series:
    """
    Probability of the positive class as a Series named
    ``positive_class_probability``.

    The probability column is located through ``model.classes_``. A model
    fitted on a single class that is not the positive one never predicts
    the positive class, so its probability is zero for every row.
    """
    classes = getattr(model, "classes_", None)
    if classes is None:
        raise PredictionShapeError(f"{type(model).__name__} exposes no classes_; cannot locate positive class")
    classes = list(np.asarray(classes))
    if positive_label not in classes and len(classes) == 1:
        logger.warning(
            f"Model was fitted on class {classes[0]!r} only; positive class probability is 0 for all {len(X)} rows"
        )
        return pd.Series(np.zeros(len(X)), index=X.index, name=POSITIVE_PROBABILITY_COLUMN)
    if positive_label not in classes:
        raise PredictionShapeError(
            f"Positive class {positive_label!r} not among model classes {classes}"
        )

    proba = np.asarray(model.predict_proba(X))
    if proba.ndim != 2 or proba.shape[1] != len(classes):
        raise PredictionShapeError(
            f"Probability output must be a (n_rows, {len(classes)}) matrix, got shape {proba.shape}"
        )
    if not np.issubdtype(proba.dtype, np.number):
        raise PredictionShapeError(f"Probability output is not numeric: dtype {proba.dtype}")
    _check_length(proba, X)

    column = proba[:, classes.index(positive_label)].astype(float)
    return pd.Series(column, index=X.index, name=POSITIVE_PROBABILITY_COLUMN)


def get_feature_importance(model, feature_names) -> Optional[pd.DataFrame]:
    """Extract basic feature importance from trained model."""
    if hasattr(model, "feature_importances_"):
        return pd.DataFrame({
            "feature": list(feature_names),
            "importance": model.feature_importances_,
        }).sort_values("importance", ascending=False).reset_index(drop=True)
    return None
