"""Mini README: Core package initializer for the festival fund dashboard.

festivalfund tracks donations and expenses for a community festival and
publishes a read-only transparency view next to an authenticated admin view.
This module exposes the logging helper shared by every module; the main
building blocks live in the ``records``, ``aggregation``, ``store``,
``auth``, ``admin`` and ``interface`` sub-packages.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
