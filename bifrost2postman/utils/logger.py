"""
bifrost2postman/utils/logger.py

Centralized logging configuration for the project.
Provides a factory function for creating consistently configured loggers.
"""

import logging

from bifrost2postman.config import Config


# Private functions _______________________________________________________________________________

def _create_handler() -> logging.StreamHandler:
    """
    Create and configure a StreamHandler for stderr logging.
    Returns:
        logging.StreamHandler: Configured handler
    """
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt=Config.LOG_FORMAT,
        datefmt=Config.LOG_DATE_FORMAT
    )
    handler.setFormatter(fmt=formatter)
    return handler


def _configure_logger(logger: logging.Logger) -> logging.Logger:
    """
    Configure a logger with the project's level and format.
    Args:
        logger (logging.Logger): The logger to configure
    Returns:
        logging.Logger: The configured logger
    """
    # set log level
    logger.setLevel(Config.LOG_LEVEL)

    # prevent duplicate handlers
    if not logger.handlers:
        handler = _create_handler()
        logger.addHandler(handler)

    # force handler format consistency even if caplog interferes
    for handler in logger.handlers:
        handler.setFormatter(
            fmt=logging.Formatter(
                fmt=Config.LOG_FORMAT,
                datefmt=Config.LOG_DATE_FORMAT
            )
        )

    # prevent propagation to avoid duplicate logs
    logger.propagate = False
    return logger


# Exports _________________________________________________________________________________________

def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger by name.
    Args:
        name (str): Logger name.
    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name=name)
    return _configure_logger(logger)


def set_log_level(level: int) -> None:
    """
    Change the level of every project logger created so far (used by the CLI --verbose flag).
    Args:
        level (int): A logging level such as logging.DEBUG.
    """
    for name in list(logging.Logger.manager.loggerDict):
        if name == "bifrost2postman" or name.startswith("bifrost2postman."):
            logging.getLogger(name).setLevel(level)
