"""
Logging Configuration
Sets up console (and optionally file) output for a structure session.

Every module logs through `logging.getLogger(__name__)`, so configuring the
package logger here covers the store, the timer and the router at once.
"""
import logging
import sys
from typing import Optional, TextIO

PACKAGE_LOGGER = "voxelstructure"

# Format: Time - Module - Level - Message
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def setup_logging(level: int = logging.INFO,
                  log_file: Optional[str] = None,
                  name: str = PACKAGE_LOGGER,
                  stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configures the logger for a namespace (the whole package by default).

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        name: Logger namespace to configure.
        stream: Console stream, stdout when omitted.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Rebuilding a session in the same process must not double every line
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized for '{name}' at {logging.getLevelName(level)}")
    return logger
