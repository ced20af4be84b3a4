"""
Data Processing Module
=====================

Loads water-quality and weather records, validates them and joins them into
a single per-sample table ordered by site and date.
"""

from pathlib import Path

import numpy as np
import pandas as pd

import config
from .logging_config import get_logger

logger = get_logger(__name__)

REQUIRED_WATER_QUALITY_COLUMNS = ["site", "date", "enterococci", "water_temp", "conductivity"]
REQUIRED_WEATHER_COLUMNS = ["date", "precip"]


def _read_table(file_path):
    """Read a CSV or Parquet file, chosen by suffix."""
    suffix = Path(file_path).suffix.lower()
    if suffix in (".parquet", ".pq"):
        return pd.read_parquet(file_path, engine="pyarrow")
    return pd.read_csv(file_path)


def coerce_concentration(values):
    """
    Convert reported concentrations to floats.

    Laboratory results are sometimes censored ("<10", ">24000"); the numeric
    part is kept. Anything else unparseable becomes NaN.
    """
    if pd.api.types.is_numeric_dtype(values):
        return values.astype(float)
    cleaned = values.astype(str).str.strip().str.replace(r"^[<>]=?\s*", "", regex=True)
    cleaned = cleaned.str.replace(",", "", regex=False)
    return pd.to_numeric(cleaned, errors="coerce")


class DataProcessor:
    """
    Handles loading and joining of the raw inputs.

    Key Features:
    - Source column renaming through config column maps
    - Integrity validation of required columns and concentrations
    - Date-keyed left join that never drops a water-quality sample
    - Explicit policy for duplicate join keys
    """

    def __init__(self, duplicate_key_policy=None):
        self.duplicate_key_policy = duplicate_key_policy or getattr(
            config, "DUPLICATE_KEY_POLICY", "fan_out"
        )
        if self.duplicate_key_policy not in ("fan_out", "error"):
            raise ValueError(
                f"Unknown duplicate key policy: {self.duplicate_key_policy}. "
                "Must be 'fan_out' or 'error'"
            )
        self.dayfirst = getattr(config, "DATE_DAYFIRST", False)

    def validate_data_integrity(self, df, required_columns):
        """Check required columns and reject negative concentrations."""
        missing_cols = [col for col in required_columns if col not in df.columns]
        if missing_cols:
            raise ValueError(f"Critical columns missing: {missing_cols}")

        # raw text concentrations are checked again after coercion
        if "enterococci" in df.columns and pd.api.types.is_numeric_dtype(df["enterococci"]):
            values = df["enterococci"].dropna()
            if not values.empty and (values < 0).any():
                raise ValueError("Negative enterococci values detected - invalid sample data")

        logger.info(f"Data integrity validation passed: {len(df)} records, {len(df.columns)} columns")
        return True

    def load_water_quality(self, file_path):
        """Load water-quality samples with canonical column names."""
        logger.info(f"Loading water-quality data from {file_path}")
        data = _read_table(file_path)
        return self.prepare_water_quality(data)

    def prepare_water_quality(self, data):
        data = data.rename(columns=config.WATER_QUALITY_COLUMNS)
        self.validate_data_integrity(data, ["site", "date", "enterococci"])

        data = data.copy()
        data["date"] = pd.to_datetime(data["date"], dayfirst=self.dayfirst)
        data["enterococci"] = coerce_concentration(data["enterococci"])
        for col in ("water_temp", "conductivity"):
            if col not in data.columns:
                data[col] = np.nan
            data[col] = pd.to_numeric(data[col], errors="coerce")

        self.validate_data_integrity(data, REQUIRED_WATER_QUALITY_COLUMNS)
        logger.info(f"Water-quality data loaded: {len(data)} samples across {data['site'].nunique()} sites")
        return data[REQUIRED_WATER_QUALITY_COLUMNS]

    def load_weather(self, file_path):
        """Load daily weather records with canonical column names."""
        logger.info(f"Loading weather data from {file_path}")
        data = _read_table(file_path)
        return self.prepare_weather(data)

    def prepare_weather(self, data):
        data = data.rename(columns=config.WEATHER_COLUMNS)
        self.validate_data_integrity(data, REQUIRED_WEATHER_COLUMNS)

        data = data[REQUIRED_WEATHER_COLUMNS].copy()
        data["date"] = pd.to_datetime(data["date"], dayfirst=self.dayfirst)
        data["precip"] = pd.to_numeric(data["precip"], errors="coerce")
        logger.info(f"Weather data loaded: {len(data)} daily records")
        return data

    def _check_duplicate_keys(self, df, keys, label):
        duplicated = df.duplicated(subset=keys, keep=False)
        n_dup = int(duplicated.sum())
        if n_dup == 0:
            return

        if self.duplicate_key_policy == "error":
            examples = df.loc[duplicated, keys].drop_duplicates().head(5).to_dict("records")
            raise ValueError(f"Duplicate {label} keys {keys}: {n_dup} rows, e.g. {examples}")

        logger.warning(f"{n_dup} {label} rows share a {keys} key; join will fan out")

    def join_weather(self, water_quality, weather):
        """
        Left-join daily weather onto water-quality samples by date.

        Every sample is kept; samples without a weather record get NaN
        precipitation. The result is sorted by (site, date).
        """
        self._check_duplicate_keys(water_quality, ["site", "date"], "water-quality")
        self._check_duplicate_keys(weather, ["date"], "weather")

        joined = water_quality.merge(weather, on="date", how="left", validate="many_to_many")
        joined = joined.sort_values(["site", "date"], kind="mergesort").reset_index(drop=True)

        unmatched = int(joined["precip"].isna().sum())
        if unmatched:
            logger.info(f"{unmatched} samples have no matching precipitation record")
        logger.info(f"Joined table: {len(joined)} rows")
        return joined

    def load_and_join(self, water_quality_path, weather_path):
        """Load both sources and return the joined, sorted table."""
        water_quality = self.load_water_quality(water_quality_path)
        weather = self.load_weather(weather_path)
        return self.join_weather(water_quality, weather)

    def validate_site_ordering(self, df):
        """Raise if any site's rows are not in ascending date order."""
        for site, site_df in df.groupby("site", sort=False):
            if not site_df["date"].is_monotonic_increasing:
                raise ValueError(f"Date ordering violated for site: {site}")
        return True
