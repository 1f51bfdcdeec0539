"""Mini README: Data-access layer for festival records.

The package is divided into ``base`` for the abstract ``FestivalStore`` and
the change feed, ``memory`` for the in-process store used by demos and tests,
and ``sql`` for the SQLAlchemy-backed relational store. ``build_store`` picks
one from configuration.
"""

from typing import Optional

from .base import ChangeAction, ChangeEvent, ChangeFeed, FestivalStore
from .memory import InMemoryFestivalStore, demo_records
from .sql import SqlFestivalStore, create_store_engine


def build_store(database_url: Optional[str] = None, *, seed_demo: bool = False) -> FestivalStore:
    """Return the relational store for ``database_url`` or an in-memory one."""

    if database_url:
        return SqlFestivalStore.from_url(database_url)
    return InMemoryFestivalStore(seed_demo=seed_demo)


__all__ = [
    "ChangeAction",
    "ChangeEvent",
    "ChangeFeed",
    "FestivalStore",
    "InMemoryFestivalStore",
    "SqlFestivalStore",
    "build_store",
    "create_store_engine",
    "demo_records",
]
