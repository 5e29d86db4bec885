"""
Logging setup for the snowfall package.

Configures the dedicated "snowfall" logger rather than the root logger, so
third-party libraries such as Pillow and pygame keep their own
verbosity.
"""

import logging
from pathlib import Path
from typing import Union

LOGGER_NAME = "snowfall"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Union[str, Path, None] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the "snowfall" logger.

    Calling this again replaces the handlers instead of stacking duplicates.

    Args:
        level: Logging level name or number.
        log_file: Optional path of a log file; parent directories are created.
        fmt: Format string for all handlers.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized at %s", logging.getLevelName(logger.level))
    return logger
