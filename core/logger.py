"""
Application logger.

Everything logs through the single ``eduforge`` logger: console always,
plus a size-rotated file when LOG_FILE is configured.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import List, Optional

import config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(module)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _resolve_log_file(raw: Optional[str]) -> Optional[Path]:
    if not raw:
        return None
    path = Path(raw)
    return path if path.is_absolute() else config.BASE_DIR / path


def _handlers(log_file: Optional[Path], max_bytes: int, backup_count: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        ))
    return handlers


def setup_logger(
    name: str = "eduforge",
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure and return the named logger.

    Calling it again replaces the previous handlers, so reconfiguring at
    runtime never duplicates output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _handlers(log_file, max_bytes, backup_count):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


logger = setup_logger(
    name="eduforge",
    log_file=_resolve_log_file(config.LOG_FILE),
    level=getattr(logging, config.LOG_LEVEL, logging.INFO)
)
