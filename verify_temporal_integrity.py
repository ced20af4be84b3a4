#!/usr/bin/env python3
"""
Temporal integrity validation script.
"""

import os
import sys

import numpy as np

import config
from enterocast.data_processor import DataProcessor
from enterocast.feature_utils import add_lag_features, build_feature_frame
from enterocast.splitter import chronological_split


def validate_site_ordering(df):
    DataProcessor().validate_site_ordering(df)


def validate_lag_isolation(joined):
    """Recompute lag1_precip site by site and compare with the grouped result."""
    lagged = add_lag_features(joined)
    for site, site_df in lagged.groupby("site", sort=False):
        expected = site_df["precip"].shift(1).to_numpy()
        actual = site_df["lag1_precip"].to_numpy()
        if not np.allclose(actual, expected, equal_nan=True):
            raise ValueError(f"Lag feature crosses site boundary for site: {site}")


def validate_split(frame):
    split = chronological_split(frame)
    expected = int(np.floor(config.TRAIN_FRACTION * len(frame)))
    if len(split.train) != expected or len(split.test) != len(frame) - expected:
        raise ValueError(f"Split sizes {len(split.train)}/{len(split.test)} do not match cutover {expected}")
    for col in split.vocabulary.columns:
        unknown = set(split.test[col].dropna().astype(object)) - split.vocabulary.known(col)
        if unknown:
            raise ValueError(f"Test levels outside vocabulary for {col}: {sorted(unknown)}")


def main():
    processor = DataProcessor()
    joined = processor.load_and_join(
        os.getenv("WATER_QUALITY_PATH", config.WATER_QUALITY_PATH),
        os.getenv("WEATHER_PATH", config.WEATHER_PATH),
    )

    validate_site_ordering(joined)
    validate_lag_isolation(joined)

    frame = build_feature_frame(joined)
    validate_split(frame)

    print("Temporal integrity validation completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
