"""Basic logging configuration (minimal)."""

import logging
import os
from typing import Iterable

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(extra_loggers: Iterable[str] = ("mealdrafts",)) -> int:
    """
    Configure root logging from LOG_LEVEL.

    Args:
        extra_loggers: Loggers whose level is aligned with LOG_LEVEL
            when not set explicitly

    Returns:
        Effective numeric level
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format=DEFAULT_FORMAT)

    for logger_name in extra_loggers:
        lg = logging.getLogger(logger_name)
        if lg.level == logging.NOTSET:
            lg.setLevel(level)

    return level
