"""Mini README: Tests covering the snapshot cache and its reload rules.

Structure:
    * reload basics - summary and records come from one fetch round.
    * latest wins - a slow earlier reload never overwrites a newer one.
    * failures - outages and timeouts keep the previous snapshot.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from festivalfund.aggregation import CacheStatus, SnapshotCache
from festivalfund.errors import TransientIOError

from factories import ScriptedStore, make_donation


@pytest.mark.asyncio
async def test_reload_builds_consistent_snapshot(scenario_store: ScriptedStore) -> None:
    """Records, summary and goal all derive from the same fetch."""

    cache = SnapshotCache(scenario_store)
    assert cache.status is CacheStatus.LOADING

    snapshot = await cache.reload()

    assert cache.snapshot is snapshot
    assert cache.status is CacheStatus.READY
    assert snapshot.summary.total_donations == Decimal("1500.00")
    assert snapshot.summary.donation_count == len(snapshot.donations) == 2
    assert snapshot.goal.percentage == 75.0
    assert snapshot.goal.remaining == Decimal("500.00")
    assert snapshot.sequence == 1


@pytest.mark.asyncio
async def test_reload_is_idempotent_without_changes(scenario_store: ScriptedStore) -> None:
    cache = SnapshotCache(scenario_store)

    first = await cache.reload()
    second = await cache.reload()

    assert second.summary == first.summary
    assert second.donations == first.donations
    assert second.sequence == first.sequence + 1


@pytest.mark.asyncio
async def test_slow_earlier_reload_is_discarded(scenario_store: ScriptedStore) -> None:
    """A reload that resolves after a later one must not roll the view back."""

    cache = SnapshotCache(scenario_store)
    entered, release = scenario_store.hold_next_donation_read()

    slow = asyncio.create_task(cache.reload())
    await entered.wait()
    await scenario_store.create_donation(make_donation("250"))

    fresh = await cache.reload()
    assert fresh.summary.total_donations == Decimal("1750.00")

    release.set()
    returned = await slow

    assert cache.snapshot is fresh
    assert returned is fresh
    assert cache.snapshot.summary.total_donations == Decimal("1750.00")
    assert cache.snapshot.sequence == 2


@pytest.mark.asyncio
async def test_failed_reload_keeps_previous_snapshot(scenario_store: ScriptedStore) -> None:
    """An outage leaves the last good snapshot in place and marks it stale."""

    cache = SnapshotCache(scenario_store)
    good = await cache.reload()

    scenario_store.fail_reads = True
    with pytest.raises(TransientIOError):
        await cache.reload()

    assert cache.snapshot is good
    assert cache.status is CacheStatus.STALE
    assert isinstance(cache.last_error, TransientIOError)
    status = cache.describe_status()
    assert status["has_data"] is True
    assert status["error"] == "store offline"

    scenario_store.fail_reads = False
    await cache.reload()
    assert cache.status is CacheStatus.READY
    assert cache.last_error is None


@pytest.mark.asyncio
async def test_first_load_failure_is_unavailable(scenario_store: ScriptedStore) -> None:
    """Without any snapshot a failure shows as unavailable, never as zeros."""

    cache = SnapshotCache(scenario_store)
    scenario_store.fail_reads = True

    with pytest.raises(TransientIOError):
        await cache.reload()

    assert cache.snapshot is None
    assert cache.status is CacheStatus.UNAVAILABLE
    assert cache.describe_status()["has_data"] is False


@pytest.mark.asyncio
async def test_hung_fetch_times_out(scenario_store: ScriptedStore) -> None:
    """A fetch that never answers fails the reload after the per-fetch timeout."""

    cache = SnapshotCache(scenario_store, fetch_timeout=0.05)
    good = await cache.reload()
    scenario_store.hold_next_donation_read()

    with pytest.raises(TransientIOError, match="Timed out"):
        await cache.reload()

    assert cache.snapshot is good
    assert cache.status is CacheStatus.STALE


@pytest.mark.asyncio
async def test_unexpected_store_errors_become_transient() -> None:
    class BrokenStore(ScriptedStore):
        async def list_expenses(self):
            raise ConnectionResetError("socket closed")

    cache = SnapshotCache(BrokenStore())

    with pytest.raises(TransientIOError) as excinfo:
        await cache.reload()

    assert isinstance(excinfo.value.__cause__, ConnectionResetError)


def test_timeout_must_be_positive(scenario_store: ScriptedStore) -> None:
    with pytest.raises(ValueError):
        SnapshotCache(scenario_store, fetch_timeout=0)
