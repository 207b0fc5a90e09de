"""
Logging setup.

Every module gets its logger through ``get_logger(__name__)``. Handlers are
attached once to the ``parcauto`` package logger by ``configure_logging``;
module loggers propagate to it.
"""

import logging
import logging.handlers

from parcauto.config import LOG_DATE_FORMAT, LOG_FORMAT

ROOT_LOGGER_NAME = "parcauto"


def configure_logging(level="INFO", log_file=None):
    """
    Attach a console handler (and a rotating file handler when ``log_file``
    is given) to the package logger. Calling it again only updates the level.

    The log file is limited to 10 MB with up to 5 previous versions kept.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
