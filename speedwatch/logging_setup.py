"""Centralized logging configuration."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import AppConfig

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

# chatty at INFO on every probe cycle
QUIET_LOGGERS = ("apscheduler", "urllib3")


def log_file_path(config: AppConfig) -> Path:
    """Resolve ``logging.file_name``; relative names live under ``paths.logs_dir``."""

    target = Path(config.logging.file_name).expanduser()
    if not target.is_absolute():
        target = config.paths.logs_dir / target
    return target


def configure_logging(config: AppConfig) -> Path:
    log_path = log_file_path(config)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.logging.level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=config.logging.max_bytes,
        backupCount=config.logging.backup_count,
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if config.logging.console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    LOGGER.debug("Logging to %s", log_path)
    return log_path
