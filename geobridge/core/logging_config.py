# -*- coding: utf-8 -*-
"""Logging configuration for geobridge.

Every module obtains its logger through :func:`get_module_logger`, so the
handlers installed once by :func:`setup_logging` apply to the whole package.
"""

import logging
import os
from typing import Optional

from .config import LOGGING_CONFIG

ROOT_LOGGER_NAME = "geobridge"


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None, module_name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Configure and return a logger with the specified settings.

    Parameters
    ----------
    log_level : str, optional
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        If None, uses the level from ``LOGGING_CONFIG``.
    log_file : str, optional
        Path to a log file. Enables file logging even when ``LOGGING_CONFIG``
        has it switched off.
    module_name : str, optional
        Name of the logger to configure, by default the package root logger.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(module_name)

    level = log_level or LOGGING_CONFIG.get("level", "INFO")
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    logger.setLevel(numeric_level)

    # Already configured: only the level is updated
    if logger.handlers:
        return logger

    log_format = LOGGING_CONFIG.get("log_format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file_path = log_file or (LOGGING_CONFIG.get("log_file") if LOGGING_CONFIG.get("log_to_file") else None)
    if log_file_path:
        log_dir = os.path.dirname(str(log_file_path))
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized at level: {level}")
    return logger


def get_module_logger(module_name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Parameters
    ----------
    module_name : str
        Name of the module, typically ``__name__``.

    Returns
    -------
    logging.Logger
        Child logger of the package root logger.
    """
    if module_name == ROOT_LOGGER_NAME or module_name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(module_name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{module_name}")
