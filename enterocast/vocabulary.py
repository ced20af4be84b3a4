"""
Category vocabularies.

A ``CategoryVocabulary`` records the allowed levels of each categorical
column once, and is then passed explicitly to every step that needs
consistent encoding (split harmonisation, one-hot encoding, test-time
transforms). The reserved novel level is always the last level of every
column, so values outside the recorded set are remapped instead of
rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import pandas as pd

import config


def _observed_levels(series: pd.Series) -> list:
    if isinstance(series.dtype, pd.CategoricalDtype):
        levels = list(series.cat.categories)
    else:
        levels = sorted(series.dropna().unique().tolist())
    # levels are strings so they can sit beside the novel level in one encoder
    return list(dict.fromkeys(str(lvl) for lvl in levels))


def _as_text(series: pd.Series) -> pd.Series:
    values = series.astype(object)
    return values.where(values.isna(), values.astype(str))


@dataclass(frozen=True)
class CategoryVocabulary:
    """Immutable column -> ordered levels mapping, novel level included."""

    levels: Mapping[str, tuple]
    novel_level: str = "new"

    @classmethod
    def from_frame(cls, df: pd.DataFrame, columns, novel_level: Optional[str] = None):
        """
        Record levels from *df*.

        Categorical columns keep their declared level order (including
        levels with no rows); other columns use their sorted distinct values.
        Levels are stored as strings, so integer site codes such as ``101``
        become ``"101"``.
        """
        novel = novel_level if novel_level is not None else config.NOVEL_LEVEL
        levels = {}
        for col in columns:
            observed = [lvl for lvl in _observed_levels(df[col]) if lvl != novel]
            levels[col] = tuple(observed) + (novel,)
        return cls(levels=levels, novel_level=novel)

    @property
    def columns(self) -> list[str]:
        return list(self.levels)

    def categories(self, column: str) -> list:
        return list(self.levels[column])

    def known(self, column: str) -> set:
        return set(self.levels[column])

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Return a copy of *df* whose vocabulary columns are categoricals with
        exactly the recorded levels; unknown values become the novel level.
        """
        df = df.copy()
        for col, levels in self.levels.items():
            values = _as_text(df[col])
            unseen = values.notna() & ~values.isin(levels)
            if unseen.any():
                values = values.where(~unseen, self.novel_level)
            df[col] = pd.Categorical(values, categories=list(levels))
        return df

    def novel_counts(self, df: pd.DataFrame) -> dict[str, int]:
        """Count values per column that ``apply`` would map to the novel level."""
        counts = {}
        for col, levels in self.levels.items():
            values = _as_text(df[col])
            counts[col] = int((values.notna() & ~values.isin(levels)).sum())
        return counts
