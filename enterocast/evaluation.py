"""
Evaluation Metrics
==================

Regression error metrics, classification metrics at a fixed operating
point, ROC/PR areas, and the F1 threshold sweep used to pick the operating
point for each classifier.

Predictions are binarised as ``probability >= threshold`` everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    auc,
    f1_score,
    mean_squared_error,
    precision_recall_curve,
    precision_score,
    r2_score,
    recall_score,
    roc_auc_score,
)

import config
from .logging_config import get_logger

logger = get_logger(__name__)


def threshold_grid(start=None, stop=None, step=None) -> np.ndarray:
    """Candidate thresholds, ascending, rounded to the step's precision."""
    start = config.THRESHOLD_SWEEP_START if start is None else start
    stop = config.THRESHOLD_SWEEP_STOP if stop is None else stop
    step = config.THRESHOLD_SWEEP_STEP if step is None else step
    n_steps = int(round((stop - start) / step))
    return np.round(start + step * np.arange(n_steps + 1), 10)


def binarize(probabilities, threshold: float) -> np.ndarray:
    return (np.asarray(probabilities, dtype=float) >= threshold).astype(int)


def regression_metrics(y_true, y_pred) -> dict:
    """RMSE and R² between actual and predicted values."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))
    r2 = float(r2_score(y_true, y_pred)) if len(y_true) > 1 else float("nan")
    return {"rmse": rmse, "r2": r2}


def roc_auc(y_true, probabilities) -> float:
    """ROC AUC, or NaN when it cannot be computed (e.g. one class only)."""
    try:
        return float(roc_auc_score(np.asarray(y_true).astype(int), probabilities))
    except ValueError as exc:
        logger.warning(f"ROC AUC unavailable: {exc}")
        return float("nan")


def pr_auc(scores_positive, scores_negative) -> float:
    """
    Area under the precision-recall curve from two score pools: scores of
    truly positive rows and scores of truly negative rows.

    NaN when either pool is empty.
    """
    scores_positive = np.asarray(scores_positive, dtype=float)
    scores_negative = np.asarray(scores_negative, dtype=float)
    if scores_positive.size == 0 or scores_negative.size == 0:
        logger.warning(
            f"PR AUC unavailable: {scores_positive.size} positive and {scores_negative.size} negative scores"
        )
        return float("nan")

    y_true = np.concatenate([np.ones(scores_positive.size), np.zeros(scores_negative.size)])
    y_score = np.concatenate([scores_positive, scores_negative])
    precision, recall, _ = precision_recall_curve(y_true, y_score)
    return float(auc(recall, precision))


def binary_metrics(y_true, y_pred) -> dict:
    y_true = np.asarray(y_true).astype(int)
    y_pred = np.asarray(y_pred).astype(int)
    return {
        "accuracy": float(accuracy_score(y_true, y_pred)),
        "precision": float(precision_score(y_true, y_pred, zero_division=0)),
        "recall": float(recall_score(y_true, y_pred, zero_division=0)),
        "f1": float(f1_score(y_true, y_pred, zero_division=0)),
    }


@dataclass(frozen=True)
class ThresholdSweepResult:
    """F1 per candidate threshold and the first threshold reaching the maximum."""

    f1_by_threshold: Mapping[float, float]
    best_threshold: float
    best_f1: float
    metrics_at_best: Mapping[str, float] = field(default_factory=dict)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"threshold": list(self.f1_by_threshold), "f1": list(self.f1_by_threshold.values())}
        )


def threshold_sweep(y_true, probabilities, thresholds=None) -> ThresholdSweepResult:
    """
    Binarise at every candidate threshold and keep the F1-maximising one.

    Ties go to the lowest threshold (first in ascending order). Accuracy,
    precision, recall and F1 are recomputed at the chosen threshold.
    """
    if thresholds is None:
        thresholds = threshold_grid()
    y_true = np.asarray(y_true).astype(int)
    probabilities = np.asarray(probabilities, dtype=float)

    f1_by_threshold = {}
    for t in thresholds:
        f1_by_threshold[float(t)] = float(f1_score(y_true, binarize(probabilities, t), zero_division=0))

    keys = list(f1_by_threshold)
    values = np.array([f1_by_threshold[k] for k in keys])
    best_idx = int(np.argmax(values))
    best_threshold = keys[best_idx]

    metrics = binary_metrics(y_true, binarize(probabilities, best_threshold))
    logger.info(f"Threshold sweep: best threshold {best_threshold:.2f} with F1 {f1_by_threshold[best_threshold]:.4f}")
    return ThresholdSweepResult(
        f1_by_threshold=f1_by_threshold,
        best_threshold=best_threshold,
        best_f1=f1_by_threshold[best_threshold],
        metrics_at_best=metrics,
    )


@dataclass(frozen=True)
class ClassificationReport:
    accuracy: float
    roc_auc: float
    pr_auc: float
    sweep: ThresholdSweepResult


def evaluate_classifier(y_true, probabilities, decision_threshold: Optional[float] = None) -> ClassificationReport:
    """Full classification evaluation on held-out probabilities."""
    if decision_threshold is None:
        decision_threshold = config.DEFAULT_DECISION_THRESHOLD
    y_true = np.asarray(y_true).astype(int)
    probabilities = np.asarray(probabilities, dtype=float)

    accuracy = float(accuracy_score(y_true, binarize(probabilities, decision_threshold)))
    report = ClassificationReport(
        accuracy=accuracy,
        roc_auc=roc_auc(y_true, probabilities),
        pr_auc=pr_auc(probabilities[y_true == 1], probabilities[y_true == 0]),
        sweep=threshold_sweep(y_true, probabilities),
    )
    logger.info(
        f"Classification — Accuracy: {report.accuracy:.4f}  ROC AUC: {report.roc_auc:.4f}  PR AUC: {report.pr_auc:.4f}"
    )
    return report
