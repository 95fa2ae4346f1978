"""Logging configuration for applications that use object_annotate."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from object_annotate.config import get_config

_LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_PACKAGE_LOGGER_NAME = "object_annotate"


def setup_logging(log_dir: Path | None = None, level: str | None = None) -> logging.Handler:
    """Send the package's log records to a daily rotating file.

    Call once at startup. Returns the installed handler so callers can
    remove it again.
    """
    cfg = get_config().log
    base_dir = Path(log_dir or cfg.dir)
    base_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(_PACKAGE_LOGGER_NAME)
    logger.setLevel(getattr(logging, (level or cfg.level).upper(), logging.INFO))

    # Daily rotating file handler, two weeks kept
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(base_dir / "object_annotate.log"),
        when="midnight",
        interval=1,
        backupCount=14,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT))
    logger.addHandler(handler)
    return handler
