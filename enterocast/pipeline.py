"""
Exceedance Pipeline
===================

Runs the whole analysis in one pass:

1. load and join water-quality and weather records
2. build per-site lag/rolling features and the exceedance label
3. split chronologically (80/20 row cutover)
4. fit a random-forest regressor and classifier on the training prefix
5. fit a SMOTE-rebalanced classifier with a training-only preprocessor
6. evaluate everything on the test suffix and assemble the results table

Every stochastic step is seeded from ``config.RANDOM_SEED``.
"""

from __future__ import annotations

import random
from typing import Optional

import numpy as np
import pandas as pd

import config
from .data_processor import DataProcessor
from .evaluation import ClassificationReport, evaluate_classifier, regression_metrics
from .feature_utils import build_feature_frame, create_transformer, predictor_columns, regression_target
from .imbalance import fit_resample, minority_count
from .logging_config import get_logger
from .model_factory import (
    fit_classifier,
    fit_regressor,
    get_feature_importance,
    predict_positive_probability,
    predict_values,
)
from .splitter import ChronologicalSplit, chronological_split

logger = get_logger(__name__)

RESULT_COLUMNS = ["Model", "RMSE", "R2", "Accuracy", "ROC_AUC", "PR_AUC", "F1_Optimal_Threshold"]

REGRESSION_MODEL_NAME = "Random Forest Regression"
CLASSIFICATION_MODEL_NAME = "Random Forest Classification"
SMOTE_MODEL_NAME = "SMOTE + Random Forest Classification"


def _empty_row(model_name: str) -> dict:
    row = {col: np.nan for col in RESULT_COLUMNS}
    row["Model"] = model_name
    return row


def _classification_row(model_name: str, report: ClassificationReport) -> dict:
    row = _empty_row(model_name)
    row["Accuracy"] = report.accuracy
    row["ROC_AUC"] = report.roc_auc
    row["PR_AUC"] = report.pr_auc
    row["F1_Optimal_Threshold"] = report.sweep.best_threshold
    return row


class ExceedancePipeline:
    """
    Leak-free enterococci exceedance modelling pipeline.

    Holds no state between runs apart from the last results, kept for
    display and inspection.
    """

    def __init__(self, water_quality_path=None, weather_path=None, model_type=None):
        logger.info("Initializing ExceedancePipeline")
        self.water_quality_path = water_quality_path or config.WATER_QUALITY_PATH
        self.weather_path = weather_path or config.WEATHER_PATH
        self.model_type = model_type or getattr(config, "FORECAST_MODEL", "rf")
        self.data_processor = DataProcessor()

        self.random_seed = config.RANDOM_SEED
        random.seed(self.random_seed)
        np.random.seed(self.random_seed)

        self.results_df: Optional[pd.DataFrame] = None
        self.summary: Optional[dict] = None
        self.classification_reports: dict[str, ClassificationReport] = {}
        self.feature_importances: dict[str, pd.DataFrame] = {}

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def load_joined_data(self) -> pd.DataFrame:
        return self.data_processor.load_and_join(self.water_quality_path, self.weather_path)

    def summarize(self, frame: pd.DataFrame, split: ChronologicalSplit) -> dict:
        """Summary statistics for the model-ready table and its split."""
        summary = {
            "rows": len(frame),
            "sites": int(frame["site"].nunique()),
            "first_date": frame["date"].min().date(),
            "last_date": frame["date"].max().date(),
            "median_enterococci": float(frame["enterococci"].median()),
            "exceedance_rate": float(frame["exceed"].mean()),
            "train_rows": len(split.train),
            "test_rows": len(split.test),
            "train_exceedances": int(split.train["exceed"].sum()),
            "test_exceedances": int(split.test["exceed"].sum()),
        }
        return summary

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def _encode(self, split: ChronologicalSplit):
        numeric_cols, categorical_cols = predictor_columns()
        columns = [*numeric_cols, *categorical_cols]
        transformer = create_transformer(numeric_cols, split.vocabulary)
        X_train = transformer.fit_transform(split.train[columns])
        X_test = transformer.transform(split.test[columns])
        return X_train, X_test

    def _record_importance(self, model_name: str, model, feature_names):
        importance = get_feature_importance(model, feature_names)
        if importance is not None:
            self.feature_importances[model_name] = importance

    def run_regression(self, split: ChronologicalSplit, X_train=None, X_test=None) -> dict:
        if X_train is None or X_test is None:
            X_train, X_test = self._encode(split)
        target = regression_target()

        model = fit_regressor(X_train, split.train[target], self.model_type)
        self._record_importance(REGRESSION_MODEL_NAME, model, X_train.columns)
        predicted = predict_values(model, X_test)
        metrics = regression_metrics(split.test[target], predicted)
        logger.info(f"Regression — RMSE: {metrics['rmse']:.4f}  R2: {metrics['r2']:.4f}")

        row = _empty_row(REGRESSION_MODEL_NAME)
        row["RMSE"] = metrics["rmse"]
        row["R2"] = metrics["r2"]
        return row

    def run_classification(self, split: ChronologicalSplit, X_train=None, X_test=None) -> dict:
        if X_train is None or X_test is None:
            X_train, X_test = self._encode(split)

        model = fit_classifier(X_train, split.train["exceed"], self.model_type)
        self._record_importance(CLASSIFICATION_MODEL_NAME, model, X_train.columns)
        probabilities = predict_positive_probability(model, X_test)
        report = evaluate_classifier(split.test["exceed"], probabilities)
        self.classification_reports[CLASSIFICATION_MODEL_NAME] = report
        return _classification_row(CLASSIFICATION_MODEL_NAME, report)

    def run_smote_classification(self, split: ChronologicalSplit) -> dict:
        n_minority = minority_count(split.train["exceed"])
        if n_minority < 2:
            logger.warning(
                f"Skipping {SMOTE_MODEL_NAME}: training partition has {n_minority} "
                "minority-class rows, SMOTE needs at least 2"
            )
            return _empty_row(SMOTE_MODEL_NAME)

        numeric_cols, categorical_cols = predictor_columns()
        resampled = fit_resample(split.train, numeric_cols, categorical_cols)
        X_test = resampled.preprocessor.transform(split.test)

        model = fit_classifier(resampled.X, resampled.y, self.model_type)
        self._record_importance(SMOTE_MODEL_NAME, model, resampled.X.columns)
        probabilities = predict_positive_probability(model, X_test)
        report = evaluate_classifier(split.test["exceed"], probabilities)
        self.classification_reports[SMOTE_MODEL_NAME] = report
        return _classification_row(SMOTE_MODEL_NAME, report)

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def run_on_joined(self, joined: pd.DataFrame) -> pd.DataFrame:
        """Run features, split, models and evaluation on an already joined table."""
        self.data_processor.validate_site_ordering(joined)
        frame = build_feature_frame(joined)
        split = chronological_split(frame)

        self.summary = self.summarize(frame, split)
        self._display_summary(self.summary)

        self.classification_reports = {}
        self.feature_importances = {}
        X_train, X_test = self._encode(split)
        rows = [
            self.run_regression(split, X_train, X_test),
            self.run_classification(split, X_train, X_test),
            self.run_smote_classification(split),
        ]

        self.results_df = pd.DataFrame(rows, columns=RESULT_COLUMNS)
        self._display_evaluation_metrics()
        return self.results_df

    def run(self) -> pd.DataFrame:
        """Load the configured inputs and run the whole pipeline."""
        joined = self.load_joined_data()
        results = self.run_on_joined(joined)

        output_path = getattr(config, "RESULTS_OUTPUT_PATH", None)
        if output_path:
            results.to_csv(output_path, index=False)
            logger.info(f"Results written to {output_path}")
        return results

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def _display_summary(self, summary: dict):
        print(
            f"[INFO] {summary['rows']} model-ready samples across {summary['sites']} sites "
            f"({summary['first_date']} to {summary['last_date']})"
        )
        print(
            f"[INFO] Median enterococci {summary['median_enterococci']:.1f} CFU/100mL, "
            f"exceedance rate {summary['exceedance_rate']:.1%}"
        )
        print(
            f"[INFO] Train: {summary['train_rows']} rows ({summary['train_exceedances']} exceedances), "
            f"Test: {summary['test_rows']} rows ({summary['test_exceedances']} exceedances)"
        )

    def _display_evaluation_metrics(self):
        if self.results_df is None or self.results_df.empty:
            return

        print()
        print(self.results_df.to_string(index=False, float_format=lambda v: f"{v:.4f}"))

        for name, report in self.classification_reports.items():
            best = report.sweep.metrics_at_best
            print(
                f"\n{name} @ threshold {report.sweep.best_threshold:.2f}: "
                f"accuracy {best['accuracy']:.4f}, precision {best['precision']:.4f}, "
                f"recall {best['recall']:.4f}, F1 {best['f1']:.4f}"
            )

        for name, importance in self.feature_importances.items():
            top = importance.head(5)
            features = ", ".join(f"{row.feature} ({row.importance:.3f})" for row in top.itertuples())
            print(f"\nTop features for {name}: {features}")
