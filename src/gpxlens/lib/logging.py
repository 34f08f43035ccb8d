"""Logging configuration for gpxlens.

Provides structured logging to console and file with configurable levels.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from gpxlens.lib.paths import get_logs_dir

if TYPE_CHECKING:
    from gpxlens.config import Config

# Module logger
logger = logging.getLogger("gpxlens")


def setup_logging(
    config: "Config | None" = None,
    log_dir: Path | None = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    quiet: bool = False,
) -> logging.Logger:
    """Set up logging for gpxlens.

    Creates handlers for:
    - Console output at INFO level (or WARNING if quiet)
    - File output at DEBUG level in logs/ directory

    Args:
        config: Application config (for log_dir from data directory).
        log_dir: Explicit log directory path.
        console_level: Log level for console output.
        file_level: Log level for file output.
        quiet: If True, console only shows warnings and errors.

    Returns:
        Configured logger.
    """
    # Clear existing handlers
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG)

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING if quiet else console_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    # Determine log directory
    if log_dir is None:
        if config is not None:
            log_dir = get_logs_dir(config.data.directory)
        else:
            log_dir = Path("logs")

    log_dir.mkdir(parents=True, exist_ok=True)

    # File handler with timestamp-based filename (ISO 8601 basic format)
    timestamp = datetime.now().strftime("%Y%m%dT%H%M%S")
    log_file = log_dir / f"gpxlens-{timestamp}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    # gpxpy logs XML parser fallbacks at DEBUG
    gpxpy_logger = logging.getLogger("gpxpy")
    gpxpy_logger.setLevel(logging.DEBUG)
    for handler in [h for h in gpxpy_logger.handlers if isinstance(h, logging.FileHandler)]:
        gpxpy_logger.removeHandler(handler)
    gpxpy_logger.addHandler(file_handler)

    logger.debug("Logging initialized. Log file: %s", log_file)

    return logger
