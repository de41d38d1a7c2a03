# backend/webwallet/logger.py
"""
Logging for the webwallet package.

Usage:
    from webwallet.logger import get_logger
    log = get_logger(__name__)
    log.info("Asset added: %s", asset_id)
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from webwallet.core.config import settings

LOG_DIR = Path(settings.LOG_DIR) if settings.LOG_DIR else Path(__file__).resolve().parent.parent / "logs"
LOG_FILE = LOG_DIR / "webwallet.log"

CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _file_handler() -> RotatingFileHandler:
    LOG_DIR.mkdir(exist_ok=True, parents=True)
    fh = RotatingFileHandler(LOG_FILE, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(logging.Formatter(FILE_FORMAT))
    return fh


def get_logger(name: str) -> logging.Logger:
    """Logger with a console handler and the shared rotating file, configured once per name"""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    sh = logging.StreamHandler()
    sh.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(sh)
    logger.addHandler(_file_handler())
    return logger
