"""Mini README: Application-wide logging helpers for festivalfund.

Structure:
    * configure_root_logger - install the shared handler and level once.
    * get_logger - factory returning module loggers with baseline config.
    * resolve_level - translate configured level names into logging levels.

Usage:
    Modules declare ``LOGGER = get_logger(__name__)``. The CLI and the web
    application call ``configure_root_logger`` with the level taken from
    ``FestivalFundSettings.log_level`` before serving traffic. Repeated calls
    only adjust the level so reloads in development never stack handlers.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGER_INITIALISED = False


def resolve_level(level: Union[int, str]) -> int:
    """Return a numeric logging level for names such as ``"debug"``."""

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_root_logger(level: Union[int, str] = logging.INFO) -> None:
    """Configure the root logger with a debugging friendly formatter."""

    global _LOGGER_INITIALISED
    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_level(level))
    if _LOGGER_INITIALISED:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger ensuring baseline configuration."""

    if not _LOGGER_INITIALISED:
        configure_root_logger()
    return logging.getLogger(name)
