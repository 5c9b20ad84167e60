"""Logging setup utilities."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "hicnsync"


def configure_logging(*, log_path: Path | None = None, verbose: bool = False) -> logging.Logger:
    """Configure the ``hicnsync`` logger hierarchy.

    ``verbose`` switches to DEBUG, which also turns on connection-level
    output from urllib3 and per-chunk download progress.
    """

    logger = logging.getLogger(LOGGER_NAME)
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)

    has_stream = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    existing_files = {getattr(h, "baseFilename", None) for h in logger.handlers}

    formatter = logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    if not has_stream:
        stream_handler = logging.StreamHandler(stream=sys.stdout)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if log_path and str(log_path.absolute()) not in existing_files:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


__all__ = ["LOGGER_NAME", "configure_logging"]
