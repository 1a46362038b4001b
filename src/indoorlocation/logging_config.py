"""
Logging Configuration
Sets up the 'indoorlocation' logger for the CLI and for embedding applications.

Log records go to stderr: the CLI prints the estimated position on stdout and
that output stays machine-readable at any log level.
"""
import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = "indoorlocation"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Chatty at DEBUG (font discovery, PNG chunks) and irrelevant to positioning
NOISY_LOGGERS = ("matplotlib", "PIL")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configures the logger for the 'indoorlocation' namespace.

    Args:
        level: Logging level of the package (e.g. logging.DEBUG, logging.INFO).
        log_file: Optional path to save logs to a file.
        stream: Console stream, stderr when None.

    Returns:
        The package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.debug(f"Logging initialized at level {logging.getLevelName(level)}.")
    return logger
