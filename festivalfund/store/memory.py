"""Mini README: In-memory festival store for demos and tests.

Structure:
    * InMemoryFestivalStore - dict-backed ``FestivalStore`` implementation.
    * demo_records - deterministic sample donations, expenses and settings.

The store is handy when no database is configured: it behaves like the
relational store (identity assignment, timestamps, ordering, change events,
``NotFoundError`` on unknown identifiers) while keeping everything in process
memory. Records are immutable, so readers receive shared references safely.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..errors import NotFoundError
from ..logging_utils import get_logger
from ..records.models import (
    Donation,
    DonationCategory,
    Expense,
    ExpenseCategory,
    FestivalSettings,
    PaymentMethod,
)
from .base import ChangeAction, ChangeFeed, FestivalStore

LOGGER = get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def demo_records() -> Tuple[List[Donation], List[Expense], FestivalSettings]:
    """Return deterministic sample data for UI previews."""

    donations = [
        Donation(
            donor_name="Ramesh Kumar",
            amount=Decimal("5001"),
            category=DonationCategory.FAMILY,
            payment_method=PaymentMethod.ONLINE,
            donation_date=date(2024, 9, 2),
        ),
        Donation(
            donor_name="Sri Lakshmi Textiles",
            amount=Decimal("10000"),
            category=DonationCategory.BUSINESS,
            payment_method=PaymentMethod.CHECK,
            donation_date=date(2024, 9, 3),
            notes="Towards pandal decorations",
        ),
        Donation(
            donor_name="Priya",
            amount=Decimal("1116"),
            category=DonationCategory.INDIVIDUAL,
            payment_method=PaymentMethod.CASH,
            donation_date=date(2024, 9, 4),
            is_anonymous=True,
        ),
    ]
    expenses = [
        Expense(
            title="Ganesha idol",
            amount=Decimal("8500"),
            category=ExpenseCategory.SUPPLIES,
            expense_date=date(2024, 9, 1),
            vendor_name="Kalakar Idols",
            receipt_number="KI-2024-118",
        ),
        Expense(
            title="Pandal lighting",
            amount=Decimal("3200"),
            category=ExpenseCategory.DECORATIONS,
            expense_date=date(2024, 9, 5),
        ),
    ]
    settings = FestivalSettings(
        festival_name="Vinayaka Chavithi",
        festival_year=2024,
        location="Community Hall, Main Street",
        start_date=date(2024, 9, 7),
        end_date=date(2024, 9, 17),
        fundraising_goal=Decimal("50000"),
        description="Join us in celebrating Lord Ganesha with devotion and community spirit.",
    )
    return donations, expenses, settings


class InMemoryFestivalStore(FestivalStore):
    """Keep festival records in dictionaries keyed by identifier."""

    def __init__(
        self,
        donations: Optional[Iterable[Donation]] = None,
        expenses: Optional[Iterable[Expense]] = None,
        settings: Optional[FestivalSettings] = None,
        *,
        changes: Optional[ChangeFeed] = None,
        clock: Callable[[], datetime] = _utcnow,
        seed_demo: bool = False,
    ) -> None:
        super().__init__(changes)
        self._clock = clock
        self._donations: Dict[str, Donation] = {}
        self._expenses: Dict[str, Expense] = {}
        self._settings: Optional[FestivalSettings] = None

        if seed_demo and donations is None and expenses is None and settings is None:
            donations, expenses, settings = demo_records()
        for donation in donations or []:
            stored = self._stamp_donation(donation)
            self._donations[stored.donation_id] = stored
        for expense in expenses or []:
            stored_expense = self._stamp_expense(expense)
            self._expenses[stored_expense.expense_id] = stored_expense
        if settings is not None:
            now = self._clock()
            self._settings = settings.with_timestamps(settings.created_at or now, settings.updated_at or now)
        LOGGER.debug(
            "In-memory store initialised with %s donations and %s expenses",
            len(self._donations),
            len(self._expenses),
        )

    def _stamp_donation(self, donation: Donation) -> Donation:
        now = self._clock()
        return donation.with_identity(
            donation.donation_id or str(uuid.uuid4()),
            donation.created_at or now,
            donation.updated_at or now,
        )

    def _stamp_expense(self, expense: Expense) -> Expense:
        now = self._clock()
        return expense.with_identity(
            expense.expense_id or str(uuid.uuid4()),
            expense.created_at or now,
            expense.updated_at or now,
        )

    async def list_donations(self) -> List[Donation]:
        return sorted(
            self._donations.values(),
            key=lambda donation: (donation.donation_date, donation.created_at or _EPOCH, donation.donation_id),
            reverse=True,
        )

    async def list_expenses(self) -> List[Expense]:
        return sorted(
            self._expenses.values(),
            key=lambda expense: (expense.expense_date, expense.created_at or _EPOCH, expense.expense_id),
            reverse=True,
        )

    async def get_settings(self) -> Optional[FestivalSettings]:
        return self._settings

    async def create_donation(self, donation: Donation) -> Donation:
        now = self._clock()
        stored = donation.with_identity(str(uuid.uuid4()), now, now)
        self._donations[stored.donation_id] = stored
        LOGGER.info("Recorded donation %s (%s)", stored.donation_id, stored.amount)
        self.changes.publish("donations", ChangeAction.INSERT, stored.donation_id)
        return stored

    async def update_donation(self, donation_id: str, donation: Donation) -> Donation:
        existing = self._donations.get(donation_id)
        if existing is None:
            raise NotFoundError("donation", donation_id)
        stored = donation.with_identity(donation_id, existing.created_at or self._clock(), self._clock())
        self._donations[donation_id] = stored
        LOGGER.info("Updated donation %s", donation_id)
        self.changes.publish("donations", ChangeAction.UPDATE, donation_id)
        return stored

    async def delete_donation(self, donation_id: str) -> None:
        if self._donations.pop(donation_id, None) is None:
            raise NotFoundError("donation", donation_id)
        LOGGER.info("Deleted donation %s", donation_id)
        self.changes.publish("donations", ChangeAction.DELETE, donation_id)

    async def create_expense(self, expense: Expense) -> Expense:
        now = self._clock()
        stored = expense.with_identity(str(uuid.uuid4()), now, now)
        self._expenses[stored.expense_id] = stored
        LOGGER.info("Recorded expense %s (%s)", stored.expense_id, stored.amount)
        self.changes.publish("expenses", ChangeAction.INSERT, stored.expense_id)
        return stored

    async def update_expense(self, expense_id: str, expense: Expense) -> Expense:
        existing = self._expenses.get(expense_id)
        if existing is None:
            raise NotFoundError("expense", expense_id)
        stored = expense.with_identity(expense_id, existing.created_at or self._clock(), self._clock())
        self._expenses[expense_id] = stored
        LOGGER.info("Updated expense %s", expense_id)
        self.changes.publish("expenses", ChangeAction.UPDATE, expense_id)
        return stored

    async def delete_expense(self, expense_id: str) -> None:
        if self._expenses.pop(expense_id, None) is None:
            raise NotFoundError("expense", expense_id)
        LOGGER.info("Deleted expense %s", expense_id)
        self.changes.publish("expenses", ChangeAction.DELETE, expense_id)

    async def upsert_settings(self, settings: FestivalSettings) -> FestivalSettings:
        now = self._clock()
        created_at = self._settings.created_at if self._settings and self._settings.created_at else now
        action = ChangeAction.UPDATE if self._settings else ChangeAction.INSERT
        self._settings = settings.with_timestamps(created_at, now)
        LOGGER.info("Saved festival settings for %s %s", settings.festival_name, settings.festival_year)
        self.changes.publish("festival_settings", action, self._settings.settings_id)
        return self._settings
