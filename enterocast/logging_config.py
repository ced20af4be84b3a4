"""
Logging Configuration
=====================

Central logging setup shared by the pipeline modules and root scripts.
Modules obtain loggers with ``get_logger(__name__)``; entry points call
``setup_logging`` once before running.
"""

import logging
import os
from datetime import datetime

LOGGER_NAMESPACE = "enterocast"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level="INFO", enable_file_logging=False, log_dir="./logs"):
    """
    Configure console (and optional file) handlers for the package logger.

    Calling it again replaces the previous handlers, so scripts can switch
    level without duplicating output.
    """
    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    root = logging.getLogger(LOGGER_NAMESPACE)
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if enable_file_logging:
        os.makedirs(log_dir, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        file_handler = logging.FileHandler(os.path.join(log_dir, f"enterocast_{stamp}.log"))
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    return root


def get_logger(name):
    """Return a logger nested under the package namespace."""
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
