"""Logging configuration for the portalscrape service."""
import logging
import os
from logging.handlers import RotatingFileHandler

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(log_dir: str = "", level: str = "INFO") -> None:
    """
    Configure the ``portalscrape`` logger with a console handler and, when
    ``log_dir`` is set, a rotating file handler.

    File: {log_dir}/portalscrape.log (5 MB per file, 7 backups = ~40 MB max)
    Calling this again does not add duplicate handlers.
    """
    logger = logging.getLogger("portalscrape")
    logger.setLevel(level.upper())
    formatter = logging.Formatter(_FORMAT)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    if log_dir and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(
            os.path.join(log_dir, "portalscrape.log"),
            maxBytes=5 * 1024 * 1024,   # 5 MB
            backupCount=7,
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
