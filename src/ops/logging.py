"""
Logging setup.

Everything in the application logs through the root logger, so one call here
routes the detector, pipeline and web messages to the log file and stderr.
"""

from __future__ import annotations

import logging
import os

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: str, log_level: str = "INFO") -> None:
    level = str(log_level).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {LOG_LEVELS}, got '{log_level}'")

    handlers = [logging.StreamHandler()]
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.insert(0, logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # uvicorn access lines for dashboard polling drown out event messages
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
