"""Mini README: Record factories and a scriptable store shared by the tests.

Structure:
    * make_donation / make_expense / make_settings - record factories.
    * ScriptedStore - in-memory store whose reads can be held open or failed,
      used to simulate slow responses and store outages.
"""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import date
from typing import Any, Deque, List, Optional, Tuple

from festivalfund.errors import TransientIOError
from festivalfund.records import Donation, Expense, FestivalSettings
from festivalfund.store import InMemoryFestivalStore


def make_donation(amount: Any = "500", **overrides: Any) -> Donation:
    fields = {
        "donor_name": "Lakshmi",
        "amount": amount,
        "category": "Individual",
        "payment_method": "Cash",
        "donation_date": date(2024, 9, 1),
    }
    fields.update(overrides)
    return Donation(**fields)


def make_expense(amount: Any = "300", **overrides: Any) -> Expense:
    fields = {
        "title": "Flowers",
        "amount": amount,
        "category": "Decorations",
        "expense_date": date(2024, 9, 2),
    }
    fields.update(overrides)
    return Expense(**fields)


def make_settings(goal: Any = "2000", **overrides: Any) -> FestivalSettings:
    fields = {
        "festival_name": "Vinayaka Chavithi",
        "festival_year": 2024,
        "start_date": date(2024, 9, 7),
        "end_date": date(2024, 9, 17),
        "fundraising_goal": goal,
    }
    fields.update(overrides)
    return FestivalSettings(**fields)


class ScriptedStore(InMemoryFestivalStore):
    """In-memory store with hooks for slow and failing reads.

    ``hold_next_donation_read`` returns ``(entered, release)`` events: the
    next ``list_donations`` call captures the current rows, sets ``entered``
    and then waits for ``release`` before answering with those rows.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.fail_reads = False
        self.donation_reads = 0
        self._holds: Deque[Tuple[asyncio.Event, asyncio.Event]] = deque()

    def hold_next_donation_read(self) -> Tuple[asyncio.Event, asyncio.Event]:
        entered, release = asyncio.Event(), asyncio.Event()
        self._holds.append((entered, release))
        return entered, release

    async def list_donations(self) -> List[Donation]:
        self.donation_reads += 1
        rows = await super().list_donations()
        if self._holds:
            entered, release = self._holds.popleft()
            entered.set()
            await release.wait()
        if self.fail_reads:
            raise TransientIOError("store offline")
        return rows

    async def list_expenses(self) -> List[Expense]:
        if self.fail_reads:
            raise TransientIOError("store offline")
        return await super().list_expenses()

    async def get_settings(self) -> Optional[FestivalSettings]:
        if self.fail_reads:
            raise TransientIOError("store offline")
        return await super().get_settings()

