#!/usr/bin/env python3
"""
Enterococci exceedance analysis.

Loads water-quality and weather data, builds per-site lag features, trains
random-forest regression/classification models (plain and SMOTE-rebalanced)
and prints the results table.

Input paths default to config.py and can be overridden with the
WATER_QUALITY_PATH and WEATHER_PATH environment variables.
"""

import os
import sys

import config
from enterocast.logging_config import setup_logging, get_logger
from enterocast.pipeline import ExceedancePipeline


def main():
    setup_logging(
        log_level=getattr(config, "LOG_LEVEL", "INFO"),
        enable_file_logging=getattr(config, "ENABLE_FILE_LOGGING", False),
        log_dir=getattr(config, "LOG_DIR", "./logs"),
    )
    logger = get_logger(__name__)

    water_quality_path = os.getenv("WATER_QUALITY_PATH", config.WATER_QUALITY_PATH)
    weather_path = os.getenv("WEATHER_PATH", config.WEATHER_PATH)
    logger.info(f"Running pipeline on {water_quality_path} and {weather_path}")

    pipeline = ExceedancePipeline(
        water_quality_path=water_quality_path,
        weather_path=weather_path,
    )
    pipeline.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
