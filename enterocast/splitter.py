"""
Chronological train/test splitting.

The feature table arrives sorted by (site, date). The split is a single row
cutover on that order: the first ``floor(TRAIN_FRACTION * N)`` rows train,
the rest test. Nothing is shuffled. Categorical predictors in both
partitions are re-typed to the vocabulary recorded from the whole table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import pandas as pd

import config
from .feature_utils import predictor_columns
from .logging_config import get_logger
from .vocabulary import CategoryVocabulary

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChronologicalSplit:
    train: pd.DataFrame
    test: pd.DataFrame
    vocabulary: CategoryVocabulary

    @property
    def cutover(self) -> int:
        return len(self.train)


def split_index(n_rows: int, train_fraction: Optional[float] = None) -> int:
    """Number of leading rows that go to training."""
    if train_fraction is None:
        train_fraction = config.TRAIN_FRACTION
    if not 0 < train_fraction < 1:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")
    return int(math.floor(train_fraction * n_rows))


def chronological_split(
    frame: pd.DataFrame,
    categorical_cols: Optional[list[str]] = None,
    train_fraction: Optional[float] = None,
) -> ChronologicalSplit:
    """
    Split *frame* into a training prefix and a test suffix.

    Raises ValueError if either partition would be empty.
    """
    if categorical_cols is None:
        _, categorical_cols = predictor_columns()

    n_rows = len(frame)
    cut = split_index(n_rows, train_fraction)
    if cut == 0 or cut == n_rows:
        raise ValueError(
            f"Cannot split {n_rows} rows into non-empty train/test partitions "
            f"(train size {cut})"
        )

    vocabulary = CategoryVocabulary.from_frame(frame, categorical_cols)

    train = vocabulary.apply(frame.iloc[:cut]).reset_index(drop=True)
    test = vocabulary.apply(frame.iloc[cut:]).reset_index(drop=True)

    max_train_date = train["date"].max()
    min_test_date = test["date"].min()
    if max_train_date > min_test_date:
        logger.warning(
            f"Row cutover is not a calendar cutover: train ends {max_train_date.date()}, "
            f"test starts {min_test_date.date()} (multi-site table ordered by site)"
        )

    logger.info(f"Chronological split: {len(train)} train rows, {len(test)} test rows")
    return ChronologicalSplit(train=train, test=test, vocabulary=vocabulary)
