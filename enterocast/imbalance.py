"""
Class-imbalance correction with SMOTE.

The categorical vocabulary and one-hot encoder are fitted on the training
partition only and returned as an immutable ``FittedPreprocessor``. The same
value is then applied to the test partition, so a level first seen at test
time lands in the reserved novel column instead of failing or being
refitted. Oversampling touches the training set only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from imblearn.over_sampling import SMOTE
from sklearn.compose import ColumnTransformer

import config
from .feature_utils import create_transformer
from .logging_config import get_logger
from .vocabulary import CategoryVocabulary

logger = get_logger(__name__)


@dataclass(frozen=True)
class FittedPreprocessor:
    """Training-fitted novel-level mapping plus one-hot encoding."""

    vocabulary: CategoryVocabulary
    numeric_cols: tuple
    transformer: ColumnTransformer

    @property
    def feature_names(self) -> list[str]:
        return list(self.transformer.get_feature_names_out())

    def transform(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Encode *frame* with the training-time fit; never refits."""
        novel = {col: n for col, n in self.vocabulary.novel_counts(frame).items() if n}
        if novel:
            logger.info(f"Mapping unseen levels to '{self.vocabulary.novel_level}': {novel}")
        columns = [*self.numeric_cols, *self.vocabulary.columns]
        mapped = self.vocabulary.apply(frame[columns])
        return self.transformer.transform(mapped)


def fit_preprocessor(train: pd.DataFrame, numeric_cols, categorical_cols) -> FittedPreprocessor:
    """Record training levels and fit the encoder on *train* only."""
    vocabulary = CategoryVocabulary.from_frame(
        _observed_only(train, categorical_cols), categorical_cols
    )
    transformer = create_transformer(list(numeric_cols), vocabulary)
    columns = [*numeric_cols, *categorical_cols]
    transformer.fit(vocabulary.apply(train[columns]))
    logger.info(
        f"Preprocessor fitted on {len(train)} training rows: "
        f"{len(transformer.get_feature_names_out())} encoded features"
    )
    return FittedPreprocessor(
        vocabulary=vocabulary,
        numeric_cols=tuple(numeric_cols),
        transformer=transformer,
    )


def _observed_only(frame: pd.DataFrame, columns) -> pd.DataFrame:
    """Drop empty categorical levels so the vocabulary reflects rows actually seen."""
    frame = frame.copy()
    for col in columns:
        if isinstance(frame[col].dtype, pd.CategoricalDtype):
            frame[col] = frame[col].cat.remove_unused_categories()
    return frame


def minority_count(y) -> int:
    """Size of the smaller class; 0 when only one class is present."""
    classes, counts = np.unique(np.asarray(y).astype(int), return_counts=True)
    if classes.size < 2:
        return 0
    return int(counts.min())


def oversample(X: pd.DataFrame, y, k_neighbors: Optional[int] = None, random_state: Optional[int] = None):
    """
    Balance classes with SMOTE.

    ``k_neighbors`` is capped at ``minority_count - 1``; fewer than two
    minority rows cannot be oversampled and raise ValueError.
    """
    if k_neighbors is None:
        k_neighbors = config.SMOTE_K_NEIGHBORS
    if random_state is None:
        random_state = config.RANDOM_SEED

    y = np.asarray(y).astype(int)
    classes, counts = np.unique(y, return_counts=True)
    if classes.size < 2:
        raise ValueError("SMOTE requires both classes in the training set")

    n_minority = int(counts.min())
    if n_minority < 2:
        raise ValueError(f"SMOTE requires at least 2 minority samples, got {n_minority}")

    effective_k = min(k_neighbors, n_minority - 1)
    if effective_k < k_neighbors:
        logger.warning(f"Reducing SMOTE k_neighbors from {k_neighbors} to {effective_k}")

    sampler = SMOTE(k_neighbors=effective_k, random_state=random_state)
    X_res, y_res = sampler.fit_resample(X, y)

    res_classes, res_counts = np.unique(y_res, return_counts=True)
    before = dict(zip(classes.tolist(), counts.tolist()))
    after = dict(zip(res_classes.tolist(), res_counts.tolist()))
    logger.info(f"SMOTE class counts: {before} -> {after}")
    return X_res, pd.Series(y_res, name="exceed")


@dataclass(frozen=True)
class ResampledTrainingSet:
    preprocessor: FittedPreprocessor
    X: pd.DataFrame
    y: pd.Series


def fit_resample(train: pd.DataFrame, numeric_cols, categorical_cols, target: str = "exceed") -> ResampledTrainingSet:
    """Fit the preprocessor on *train*, encode it and oversample the minority class."""
    preprocessor = fit_preprocessor(train, numeric_cols, categorical_cols)
    X_train = preprocessor.transform(train)
    X_res, y_res = oversample(X_train, train[target])
    return ResampledTrainingSet(preprocessor=preprocessor, X=X_res, y=y_res)
