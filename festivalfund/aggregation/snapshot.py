"""Mini README: Snapshot cache owning the dashboard's current view of the store.

Structure:
    * Snapshot - immutable donations/expenses/settings/summary bundle.
    * CacheStatus - LOADING (no data yet), UNAVAILABLE (first load failed),
      READY, or STALE (a later reload failed, previous data kept).
    * SnapshotCache - single mutator ``reload`` plus read-only accessors.

Consistency contract:
    * A reload fetches donations, expenses and settings concurrently, each
      under its own timeout, and assembles a snapshot only once all three
      have landed. Readers see either the previous complete snapshot or the
      new one, never a mix.
    * Every reload takes a sequence number when it starts. Its result is
      applied only if no later-started reload has been applied already, so a
      slow stale response cannot overwrite fresher data.
    * A failed or timed-out fetch fails the whole reload. The previous
      snapshot stays in place, the error is recorded, and the error is raised
      to the caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, NoReturn, Optional, Tuple

from ..errors import FestivalFundError, TransientIOError
from ..logging_utils import get_logger
from ..records.models import Donation, Expense, FestivalSettings
from ..store.base import FestivalStore
from .summary import FinancialSummary, GoalProgress, compute_summary, describe_goal

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """One internally consistent view of the festival's finances."""

    donations: Tuple[Donation, ...]
    expenses: Tuple[Expense, ...]
    settings: Optional[FestivalSettings]
    summary: FinancialSummary
    sequence: int
    refreshed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def goal(self) -> GoalProgress:
        target = self.settings.fundraising_goal if self.settings else 0
        return describe_goal(self.summary.total_donations, target)

    @classmethod
    def assemble(
        cls,
        donations: Any,
        expenses: Any,
        settings: Optional[FestivalSettings],
        sequence: int,
    ) -> "Snapshot":
        """Freeze fetched lists and compute their summary in one step."""

        frozen_donations = tuple(donations or ())
        frozen_expenses = tuple(expenses or ())
        return cls(
            donations=frozen_donations,
            expenses=frozen_expenses,
            settings=settings,
            summary=compute_summary(frozen_donations, frozen_expenses),
            sequence=sequence,
        )


class CacheStatus(str, Enum):
    LOADING = "loading"
    UNAVAILABLE = "unavailable"
    READY = "ready"
    STALE = "stale"


class SnapshotCache:
    """Hold the latest complete snapshot and refresh it from a store."""

    def __init__(self, store: FestivalStore, *, fetch_timeout: float = 10.0) -> None:
        if fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        self._store = store
        self._fetch_timeout = fetch_timeout
        self._snapshot: Optional[Snapshot] = None
        self._started_sequence = 0
        self._applied_sequence = 0
        self._last_error: Optional[FestivalFundError] = None
        self._last_error_at: Optional[datetime] = None

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    @property
    def last_error(self) -> Optional[FestivalFundError]:
        return self._last_error

    @property
    def status(self) -> CacheStatus:
        if self._snapshot is None:
            return CacheStatus.UNAVAILABLE if self._last_error else CacheStatus.LOADING
        return CacheStatus.STALE if self._last_error else CacheStatus.READY

    def describe_status(self) -> Dict[str, object]:
        """Status fields for JSON responses and the dashboard banner."""

        snapshot = self._snapshot
        return {
            "status": self.status.value,
            "has_data": snapshot is not None,
            "last_updated": snapshot.refreshed_at.isoformat() if snapshot else None,
            "error": str(self._last_error) if self._last_error else None,
            "error_at": self._last_error_at.isoformat() if self._last_error_at else None,
        }

    async def _fetch(self, label: str, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await asyncio.wait_for(fetcher(), timeout=self._fetch_timeout)
        except asyncio.TimeoutError as error:
            raise TransientIOError(f"Timed out after {self._fetch_timeout:g}s fetching {label}") from error

    async def reload(self) -> Snapshot:
        """Re-fetch every record set and swap in a new snapshot.

        Returns the snapshot that is current once this call finishes, which is
        a newer one when this reload's own result arrived too late to apply.
        """

        self._started_sequence += 1
        sequence = self._started_sequence
        LOGGER.debug("Reload %s started", sequence)

        results = await asyncio.gather(
            self._fetch("donations", self._store.list_donations),
            self._fetch("expenses", self._store.list_expenses),
            self._fetch("settings", self._store.get_settings),
            return_exceptions=True,
        )
        failure = next((result for result in results if isinstance(result, BaseException)), None)
        if failure is not None:
            self._raise_failure(sequence, failure)

        donations, expenses, settings = results
        try:
            snapshot = Snapshot.assemble(donations, expenses, settings, sequence)
        except FestivalFundError as error:
            self._raise_failure(sequence, error)

        if sequence < self._applied_sequence and self._snapshot is not None:
            LOGGER.debug(
                "Discarding reload %s; reload %s already applied", sequence, self._applied_sequence
            )
            return self._snapshot

        self._snapshot = snapshot
        self._applied_sequence = sequence
        self._last_error = None
        self._last_error_at = None
        LOGGER.debug(
            "Reload %s applied: %s donations, %s expenses",
            sequence,
            snapshot.summary.donation_count,
            snapshot.summary.expense_count,
        )
        return snapshot

    def _raise_failure(self, sequence: int, failure: BaseException) -> NoReturn:
        if isinstance(failure, asyncio.CancelledError):
            raise failure
        if isinstance(failure, FestivalFundError):
            error = failure
        else:
            error = TransientIOError(f"Reload failed: {failure}")
            error.__cause__ = failure
        if sequence > self._applied_sequence:
            self._last_error = error
            self._last_error_at = datetime.now(timezone.utc)
        LOGGER.warning("Reload %s failed; keeping previous snapshot: %s", sequence, error)
        raise error
