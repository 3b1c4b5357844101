"""Logging setup shared by the API server, the CLI and the pipeline."""

import logging
import sys

# Google client libraries log every discovery/auth step at INFO.
_NOISY_LOGGERS = (
    "google.auth",
    "google.auth.transport",
    "googleapiclient.discovery",
    "googleapiclient.discovery_cache",
    "urllib3.connectionpool",
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once with a stdout handler.

    Unknown level names fall back to INFO. Calling this again after a
    handler is installed is a no-op, so uvicorn and the CLI can both call it.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)
