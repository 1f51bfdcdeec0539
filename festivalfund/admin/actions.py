"""Mini README: Admin write operations with confirm-by-reload semantics.

Structure:
    * AdminActions - validated create/update/delete for donations and
      expenses plus the festival settings upsert.

Each action validates the payload into a record before touching the store,
so bad input never produces a round-trip. After the store accepts a write
the action awaits a full cache reload, routed through the refresh
coordinator when one is running so the write costs a single round-trip.
The dashboard only ever shows what the store confirmed. If that confirming
reload fails the write still stands: the failure is logged, a background
refresh is requested, and the stored record is returned so callers do not
retry a write that succeeded.
Deletes are permanent and require an explicit confirmation flag.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..aggregation.refresh import RefreshCoordinator
from ..aggregation.snapshot import SnapshotCache
from ..errors import FestivalFundError, ValidationError
from ..logging_utils import get_logger
from ..records.models import Donation, Expense, FestivalSettings
from ..store.base import FestivalStore

LOGGER = get_logger(__name__)


class AdminActions:
    """Entry points behind the admin forms."""

    def __init__(
        self,
        store: FestivalStore,
        cache: SnapshotCache,
        coordinator: Optional[RefreshCoordinator] = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._coordinator = coordinator

    async def _confirm(self, action: str) -> None:
        try:
            if self._coordinator is not None:
                await self._coordinator.refresh_and_wait()
            else:
                await self._cache.reload()
        except FestivalFundError as error:
            LOGGER.warning("Write '%s' stored but confirming reload failed: %s", action, error)
            if self._coordinator is not None:
                self._coordinator.request_refresh()

    @staticmethod
    def _require_confirmation(confirmed: bool, kind: str) -> None:
        if not confirmed:
            raise ValidationError(f"Deleting a {kind} is permanent and must be confirmed", field="confirm")

    async def add_donation(self, payload: Mapping[str, Any]) -> Donation:
        donation = Donation.from_payload(payload)
        stored = await self._store.create_donation(donation)
        await self._confirm("add donation")
        return stored

    async def edit_donation(self, donation_id: str, payload: Mapping[str, Any]) -> Donation:
        donation = Donation.from_payload(payload)
        stored = await self._store.update_donation(donation_id, donation)
        await self._confirm("edit donation")
        return stored

    async def remove_donation(self, donation_id: str, *, confirmed: bool) -> None:
        self._require_confirmation(confirmed, "donation")
        await self._store.delete_donation(donation_id)
        await self._confirm("delete donation")

    async def add_expense(self, payload: Mapping[str, Any]) -> Expense:
        expense = Expense.from_payload(payload)
        stored = await self._store.create_expense(expense)
        await self._confirm("add expense")
        return stored

    async def edit_expense(self, expense_id: str, payload: Mapping[str, Any]) -> Expense:
        expense = Expense.from_payload(payload)
        stored = await self._store.update_expense(expense_id, expense)
        await self._confirm("edit expense")
        return stored

    async def remove_expense(self, expense_id: str, *, confirmed: bool) -> None:
        self._require_confirmation(confirmed, "expense")
        await self._store.delete_expense(expense_id)
        await self._confirm("delete expense")

    async def save_settings(self, payload: Mapping[str, Any]) -> FestivalSettings:
        settings = FestivalSettings.from_payload(payload)
        stored = await self._store.upsert_settings(settings)
        await self._confirm("save settings")
        return stored
