"""Logging setup for the docgov package logger."""

import logging
import logging.handlers
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def setup_logger(
    name: str = "docgov",
    level: str = "INFO",
    log_dir: str = "./logs",
    file_logging: bool = False,
    console_logging: bool = True,
) -> logging.Logger:
    """
    Attach handlers to a named logger and set its level.

    Module loggers under ``docgov`` propagate here. Handlers are only added
    the first time; later calls just change the level. File output goes to
    ``<log_dir>/<name>.log`` and rotates at 10MB, keeping five backups.

    Raises:
        ValueError: If the level name is unknown
    """
    level_value = logging.getLevelName(level.upper())
    if not isinstance(level_value, int):
        raise ValueError(f"Invalid log level: {level}")

    logger = logging.getLogger(name)
    logger.setLevel(level_value)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = []
    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"), maxBytes=10 * 1024 * 1024, backupCount=5,
        ))
    if console_logging:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def configure_from_settings(settings) -> logging.Logger:
    """Configure the package logger from a Settings instance."""
    return setup_logger(
        "docgov",
        level=settings.log_level,
        log_dir=settings.log_dir,
        file_logging=settings.log_to_file,
    )
