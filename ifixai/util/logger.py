"""Project logger: console plus a rotating file named after the app."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ifixai.config.settings import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_from(raw: str) -> int:
    level = logging.getLevelName(str(raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def build_logger(name: str, log_dir: Path | None, level: str = "info") -> logging.Logger:
    """
    Configure the *name* logger once; later calls return it unchanged.

    With *log_dir* set, records also go to ``<log_dir>/<name>.log``. A
    directory that cannot be created leaves the console handler only.
    """
    app_logger = logging.getLogger(name)
    if app_logger.handlers:
        return app_logger

    resolved_level = _level_from(level)
    app_logger.setLevel(resolved_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    app_logger.addHandler(console)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_dir / f"{name}.log",
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            app_logger.warning("file logging disabled dir=%s error=%s", log_dir, exc)
        else:
            file_handler.setFormatter(formatter)
            app_logger.addHandler(file_handler)

    app_logger.propagate = False
    return app_logger


logger = build_logger(
    settings.app_name,
    Path(settings.log_dir) if settings.log_dir else None,
    settings.log_level,
)


def get_logger(name: str) -> logging.Logger:
    """Child of the app logger, e.g. ``ifixai.storage``."""
    return logger.getChild(name)
