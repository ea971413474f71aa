# core/logging_config.py
import logging

from core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "hotelos"

# Chatty dependencies: one line per HTTP call / job run
QUIET_LOGGERS = ("httpx", "apscheduler.executors.default", "apscheduler.scheduler")


def setup_logger(level: str = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid duplicate handlers in dev reload
    if logger.handlers:
        return logger

    logger.setLevel((level or settings.LOG_LEVEL).upper())

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(area: str) -> logging.Logger:
    """Child logger, e.g. get_logger("store") -> hotelos.store"""
    return logging.getLogger(f"{LOGGER_NAME}.{area}")


logger = setup_logger()
