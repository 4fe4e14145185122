"""
Repolens Logging Configuration

Configures the "repolens" logger tree from environment variables:
- REPOLENS_DEBUG: Enable debug logging (default: false)
- REPOLENS_LOG_FILE: Also write to this file (default: stderr only)

Library modules only call get_logger(); the embedding application decides
whether to call setup_logging().
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "repolens"
LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_TRUTHY = ("true", "1", "yes")


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.setLevel(level)
    return handler


def setup_logging(
    debug: Optional[bool] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Install stderr (and optionally file) handlers on the repolens logger.

    Calling it again replaces the previous handlers.

    Args:
        debug: Enable debug level. Defaults to REPOLENS_DEBUG env var.
        log_file: Log file path. Defaults to REPOLENS_LOG_FILE env var.

    Returns:
        The "repolens" logger
    """
    if debug is None:
        debug = os.environ.get("REPOLENS_DEBUG", "").lower() in _TRUTHY
    if log_file is None:
        log_file = os.environ.get("REPOLENS_LOG_FILE") or None

    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    # With a log file, stderr only carries warnings
    stderr_level = logging.WARNING if log_file else level
    logger.addHandler(_handler(logging.StreamHandler(sys.stderr), stderr_level))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(path), level))
        logger.info(f"Logging to file: {path}")

    return logger


def get_logger(component: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        component: Dotted component name (e.g., "ingest.engine", "ast.parser")
    """
    return logging.getLogger(f"{ROOT_LOGGER}.{component}")
