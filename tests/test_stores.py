"""Mini README: Tests covering the in-memory and SQLAlchemy festival stores.

Structure:
    * shared behaviour - both stores assign identity, order newest first,
      raise NotFoundError and publish change events.
    * SQL specifics - singleton settings row, constraint and outage mapping.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from festivalfund.errors import NotFoundError, TransientIOError, ValidationError
from festivalfund.store import (
    ChangeAction,
    ChangeFeed,
    InMemoryFestivalStore,
    SqlFestivalStore,
    build_store,
    create_store_engine,
)
from festivalfund.store.sql import FestivalSettingsRow

from factories import make_donation, make_expense, make_settings


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryFestivalStore()
    return SqlFestivalStore.from_url(f"sqlite:///{tmp_path / 'festival.db'}")


@pytest.mark.asyncio
async def test_create_assigns_identity_and_orders_newest_first(store) -> None:
    """Stored rows come back with identifiers, newest donation date first."""

    older = await store.create_donation(make_donation("500", donation_date=date(2024, 9, 1)))
    newer = await store.create_donation(make_donation("1000", donation_date=date(2024, 9, 6)))

    assert older.donation_id and newer.donation_id
    assert older.donation_id != newer.donation_id
    assert older.created_at is not None

    listed = await store.list_donations()
    assert [donation.donation_id for donation in listed] == [newer.donation_id, older.donation_id]
    assert listed[0].amount == Decimal("1000.00")


@pytest.mark.asyncio
async def test_update_and_delete_expense(store) -> None:
    stored = await store.create_expense(make_expense("300"))

    updated = await store.update_expense(stored.expense_id, make_expense("325", vendor_name="Sri Flowers"))
    assert updated.expense_id == stored.expense_id
    assert (await store.list_expenses())[0].vendor_name == "Sri Flowers"

    await store.delete_expense(stored.expense_id)
    assert await store.list_expenses() == []


@pytest.mark.asyncio
async def test_unknown_identifiers_raise_not_found(store) -> None:
    with pytest.raises(NotFoundError, match="Donation missing not found"):
        await store.update_donation("missing", make_donation())
    with pytest.raises(NotFoundError):
        await store.delete_donation("missing")
    with pytest.raises(NotFoundError):
        await store.delete_expense("missing")


@pytest.mark.asyncio
async def test_writes_publish_change_events(store) -> None:
    """Every committed write reaches change-feed subscribers."""

    events = []
    unsubscribe = store.subscribe_to_changes(events.append)

    donation = await store.create_donation(make_donation())
    await store.delete_donation(donation.donation_id)
    await store.upsert_settings(make_settings())
    unsubscribe()
    await store.create_expense(make_expense())

    assert [(event.table, event.action) for event in events] == [
        ("donations", ChangeAction.INSERT),
        ("donations", ChangeAction.DELETE),
        ("festival_settings", ChangeAction.INSERT),
    ]
    assert events[0].record_id == donation.donation_id


@pytest.mark.asyncio
async def test_settings_upsert_keeps_single_record(store) -> None:
    """Saving settings twice updates the one record instead of adding another."""

    assert await store.get_settings() is None

    await store.upsert_settings(make_settings("2000"))
    await store.upsert_settings(make_settings("3500", location="Temple grounds"))

    current = await store.get_settings()
    assert current.fundraising_goal == Decimal("3500.00")
    assert current.location == "Temple grounds"


@pytest.mark.asyncio
async def test_sql_store_holds_one_settings_row(tmp_path) -> None:
    store = SqlFestivalStore.from_url(f"sqlite:///{tmp_path / 'festival.db'}")
    await store.upsert_settings(make_settings("2000"))
    await store.upsert_settings(make_settings("2500"))

    with store.session_scope() as session:
        assert session.query(FestivalSettingsRow).count() == 1
    await store.close()


@pytest.mark.asyncio
async def test_sql_constraint_violation_is_validation_error(tmp_path) -> None:
    """Rows that slip past record validation are still refused by the table."""

    store = SqlFestivalStore.from_url(f"sqlite:///{tmp_path / 'festival.db'}")
    donation = make_donation("500")
    object.__setattr__(donation, "amount", Decimal("-5"))

    with pytest.raises(ValidationError):
        await store.create_donation(donation)
    assert await store.list_donations() == []


@pytest.mark.asyncio
async def test_unreachable_database_is_transient() -> None:
    store = SqlFestivalStore(create_store_engine("sqlite:////nonexistent-festivalfund-dir/festival.db"))

    with pytest.raises(TransientIOError):
        await store.list_donations()


def test_build_store_picks_backend(tmp_path) -> None:
    assert isinstance(build_store(None), InMemoryFestivalStore)
    assert isinstance(build_store(f"sqlite:///{tmp_path / 'festival.db'}"), SqlFestivalStore)


@pytest.mark.asyncio
async def test_demo_seed_populates_memory_store() -> None:
    store = InMemoryFestivalStore(seed_demo=True)

    assert len(await store.list_donations()) == 3
    assert len(await store.list_expenses()) == 2
    assert (await store.get_settings()).fundraising_goal == Decimal("50000.00")


def test_failing_listener_does_not_block_others() -> None:
    feed = ChangeFeed()
    received = []

    def broken(event) -> None:
        raise RuntimeError("listener bug")

    feed.subscribe(broken)
    feed.subscribe(received.append)
    event = feed.publish("donations", ChangeAction.UPDATE, "abc")

    assert received == [event]
