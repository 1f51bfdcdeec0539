"""Mini README: Abstract data-access interface for festival records.

Structure:
    * ChangeEvent - notification that a row was inserted, updated or deleted.
    * ChangeFeed - in-process publish/subscribe hub for change events.
    * FestivalStore - asynchronous interface implemented by concrete stores.

Stores own the record sets; the aggregation engine only reads them through
``list_donations``, ``list_expenses`` and ``get_settings``. Every committed
write publishes a ``ChangeEvent``. Subscribers must not rely on event order
or uniqueness; they treat any event as "something changed".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from ..logging_utils import get_logger
from ..records.models import Donation, Expense, FestivalSettings

LOGGER = get_logger(__name__)


class ChangeAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A single row-level change reported by the store."""

    table: str
    action: ChangeAction
    record_id: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ChangeListener = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


class ChangeFeed:
    """Fan out change events to registered listeners."""

    def __init__(self) -> None:
        self._listeners: List[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Unsubscribe:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)
        LOGGER.debug("Change listener registered (%s active)", len(self._listeners))

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
                LOGGER.debug("Change listener removed (%s active)", len(self._listeners))

        return unsubscribe

    def publish(self, table: str, action: ChangeAction, record_id: str) -> ChangeEvent:
        """Deliver an event to every listener; a failing listener is logged."""

        event = ChangeEvent(table=table, action=action, record_id=record_id)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                LOGGER.exception("Change listener failed for %s %s", table, action.value)
        return event

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class FestivalStore(ABC):
    """Asynchronous access to donations, expenses and festival settings."""

    def __init__(self, changes: Optional[ChangeFeed] = None) -> None:
        self.changes = changes or ChangeFeed()

    @abstractmethod
    async def list_donations(self) -> List[Donation]:
        """Return every donation ordered by donation date, newest first."""

    @abstractmethod
    async def list_expenses(self) -> List[Expense]:
        """Return every expense ordered by expense date, newest first."""

    @abstractmethod
    async def get_settings(self) -> Optional[FestivalSettings]:
        """Return the singleton settings row, or ``None`` before first save."""

    @abstractmethod
    async def create_donation(self, donation: Donation) -> Donation:
        """Insert a donation and return it with identity and timestamps."""

    @abstractmethod
    async def update_donation(self, donation_id: str, donation: Donation) -> Donation:
        """Replace the fields of an existing donation in place."""

    @abstractmethod
    async def delete_donation(self, donation_id: str) -> None:
        """Remove a donation permanently."""

    @abstractmethod
    async def create_expense(self, expense: Expense) -> Expense:
        """Insert an expense and return it with identity and timestamps."""

    @abstractmethod
    async def update_expense(self, expense_id: str, expense: Expense) -> Expense:
        """Replace the fields of an existing expense in place."""

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> None:
        """Remove an expense permanently."""

    @abstractmethod
    async def upsert_settings(self, settings: FestivalSettings) -> FestivalSettings:
        """Create or replace the singleton settings row."""

    def subscribe_to_changes(self, on_change: ChangeListener) -> Unsubscribe:
        """Register for change notifications; returns an unsubscribe callable."""

        return self.changes.subscribe(on_change)

    async def close(self) -> None:
        """Release store resources; the default store holds none."""
