"""
Feature Engineering Utilities
=============================

Per-site lag and rolling precipitation features, calendar categoricals and
the exceedance label.

All lag/rolling values are computed inside one site's date-ordered rows, so
nothing crosses sites and nothing comes from a later date. Windows count
observations, not calendar days, and are only defined when full.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import OneHotEncoder

import config
from .logging_config import get_logger
from .vocabulary import CategoryVocabulary

logger = get_logger(__name__)


def rolling_feature_name(window: int) -> str:
    return f"roll{window}_precip"


def model_ready_columns() -> list[str]:
    """Columns that must be present for a row to enter modelling."""
    rolling = [rolling_feature_name(w) for w in config.ROLLING_PRECIP_WINDOWS]
    return ["precip", "lag1_precip", *rolling, "lag1_temp", "lag1_cond", "enterococci"]


def add_lag_features(df: pd.DataFrame, group_col: str = "site") -> pd.DataFrame:
    """
    Add previous-row and trailing-sum features within each site.

    Expects *df* sorted by (site, date); returns a new frame.
    """
    df = df.copy()
    grouped = df.groupby(group_col, sort=False)

    df["lag1_precip"] = grouped["precip"].shift(1)
    df["lag1_temp"] = grouped["water_temp"].shift(1)
    df["lag1_cond"] = grouped["conductivity"].shift(1)

    for window in config.ROLLING_PRECIP_WINDOWS:
        # min_periods == window: a partial or NaN-containing window stays NaN
        df[rolling_feature_name(window)] = grouped["precip"].transform(
            lambda x, w=window: x.rolling(window=w, min_periods=w).sum()
        )

    return df


def add_calendar_features(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add day-of-week, month and season categoricals derived from ``date``.

    ``dow`` and ``month`` use pandas' default (sorted) level order; ``season``
    follows the fixed order in ``config.SEASON_ORDER``.
    """
    df = df.copy()
    df["dow"] = pd.Categorical(df["date"].dt.day_name())
    df["month"] = pd.Categorical(df["date"].dt.month_name())
    df["season"] = pd.Categorical(
        df["date"].dt.month.map(config.SEASON_BY_MONTH),
        categories=config.SEASON_ORDER,
    )
    return df


def add_exceedance_label(df: pd.DataFrame, threshold: float | None = None) -> pd.DataFrame:
    """Flag samples whose concentration is strictly above the limit."""
    if threshold is None:
        threshold = config.EXCEEDANCE_THRESHOLD
    df = df.copy()
    df["exceed"] = df["enterococci"] > threshold
    if getattr(config, "USE_LOG_TARGET_TRANSFORM", False):
        df["log_enterococci"] = np.log10(df["enterococci"] + 1)
    return df


def build_feature_frame(joined: pd.DataFrame) -> pd.DataFrame:
    """
    Turn the joined sample table into the model-ready feature table.

    Rows lacking any lag/rolling feature, precipitation or concentration are
    dropped. The (site, date) order of *joined* is preserved.
    """
    logger.info(f"Building feature frame from {len(joined)} joined rows")

    frame = add_lag_features(joined)
    frame = add_calendar_features(frame)
    frame = add_exceedance_label(frame)

    required = model_ready_columns()
    complete = frame[required].notna().all(axis=1)
    n_dropped = int((~complete).sum())
    frame = frame.loc[complete].reset_index(drop=True)
    for col in ("dow", "month"):
        frame[col] = frame[col].cat.remove_unused_categories()

    logger.info(f"Feature frame built: {len(frame)} rows kept, {n_dropped} incomplete rows dropped")
    return frame


def predictor_columns() -> tuple[list[str], list[str]]:
    """Return (numeric, categorical) predictor names for the current config."""
    categorical = list(config.CATEGORICAL_PREDICTORS)
    if getattr(config, "USE_SITE_ENCODING", False):
        categorical = ["site", *categorical]
    return list(config.NUMERIC_PREDICTORS), categorical


def regression_target() -> str:
    if getattr(config, "USE_LOG_TARGET_TRANSFORM", False):
        return "log_enterococci"
    return "enterococci"


def create_transformer(
    numeric_cols: list[str],
    vocabulary: CategoryVocabulary,
) -> ColumnTransformer:
    """
    Create an unfitted numeric-passthrough + one-hot transformer.

    One-hot columns are fixed by *vocabulary* (novel level included), so any
    two frames encoded by the same fitted transformer share identical
    columns even when some levels are absent from one of them.

    CRITICAL: fit only on training rows.
    """
    categorical_cols = vocabulary.columns
    encoder = OneHotEncoder(
        categories=[vocabulary.categories(col) for col in categorical_cols],
        handle_unknown="error",
        sparse_output=False,
    )
    transformer = ColumnTransformer(
        [
            ("num", "passthrough", list(numeric_cols)),
            ("cat", encoder, categorical_cols),
        ],
        remainder="drop",
        verbose_feature_names_out=False,
    )
    transformer.set_output(transform="pandas")
    return transformer
