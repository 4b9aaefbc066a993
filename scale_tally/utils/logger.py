"""Logging configuration.

All station modules log under the ``scale_tally`` package logger
(``logging.getLogger(__name__)``), so the CLI configures that one logger
and every child propagates to it.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from ..config import Config

PACKAGE_LOGGER = "scale_tally"

# Third-party loggers that are noisy at INFO during Tally sync
QUIET_LOGGERS = ("urllib3",)


def resolve_level(level: Union[int, str]) -> int:
    """Map 'debug' / 'INFO' / 10 to a logging level, INFO when unknown."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    level: Union[int, str] = Config.LOG_LEVEL,
    log_file: Optional[Path] = None,
    format_string: str = Config.LOG_FORMAT,
    name: str = PACKAGE_LOGGER
) -> logging.Logger:
    """
    Configure the station logger for one CLI run.

    Handlers from an earlier call are replaced, so calling this again
    (e.g. with a different ``--log-file``) reconfigures instead of
    duplicating output.

    Args:
        level: Level name or number (default: Config.LOG_LEVEL)
        log_file: Optional file that receives the same records as stderr
        format_string: Record format (default: Config.LOG_FORMAT)
        name: Logger to configure

    Returns:
        The configured logger
    """
    log_level = resolve_level(level)
    formatter = logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_level > logging.DEBUG:
        for noisy in QUIET_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
