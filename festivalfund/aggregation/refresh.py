"""Mini README: Background refresh driven by change events and polling.

Structure:
    * RefreshCoordinator - merges both triggers into one coalescing worker.

Two producers feed the coordinator: the store's change feed (any event means
"something changed") and a fixed polling interval that covers dropped or
unavailable notifications. Both only call ``request_refresh``, which raises a
dirty flag. A single worker task waits for the flag, clears it and runs
``SnapshotCache.reload``. Triggers that arrive while a reload is in flight
collapse into exactly one follow-up reload, however many there were.
Callers that must see their own write use ``refresh_and_wait``, which rides
the same worker instead of starting a separate reload.
Failed background reloads are logged; the cache keeps its last good snapshot.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from ..errors import FestivalFundError
from ..logging_utils import get_logger
from ..store.base import ChangeEvent, FestivalStore, Unsubscribe
from .snapshot import Snapshot, SnapshotCache

LOGGER = get_logger(__name__)


class RefreshCoordinator:
    """Keep a ``SnapshotCache`` current while the application runs."""

    def __init__(
        self,
        cache: SnapshotCache,
        store: FestivalStore,
        *,
        poll_interval: float = 30.0,
        debounce: float = 0.0,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._cache = cache
        self._store = store
        self._poll_interval = poll_interval
        self._debounce = debounce
        self._dirty = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()
        self._worker: Optional[asyncio.Task] = None
        self._poller: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._waiters: List[asyncio.Future] = []
        self.completed_reloads = 0
        self.failed_reloads = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        """Subscribe to changes, start polling and queue the initial load."""

        if self.running:
            return
        self._unsubscribe = self._store.subscribe_to_changes(self._on_change)
        self._worker = asyncio.create_task(self._run_worker(), name="festivalfund-refresh")
        self._poller = asyncio.create_task(self._run_poller(), name="festivalfund-poll")
        self.request_refresh()
        LOGGER.info("Refresh coordinator started (poll every %.1fs)", self._poll_interval)

    async def stop(self) -> None:
        """Unsubscribe and cancel the background tasks."""

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in (self._poller, self._worker):
            if task is not None:
                task.cancel()
        for task in (self._poller, self._worker):
            if task is not None:
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        for waiter in self._waiters:
            waiter.cancel()
        self._waiters = []
        self._poller = self._worker = None
        self._idle.set()
        LOGGER.info("Refresh coordinator stopped")

    def request_refresh(self) -> None:
        """Ask for a reload; repeated requests before it runs are merged."""

        self._idle.clear()
        self._dirty.set()

    def _on_change(self, event: ChangeEvent) -> None:
        LOGGER.debug("Change on %s (%s %s); refresh requested", event.table, event.action.value, event.record_id)
        self.request_refresh()

    async def wait_until_idle(self) -> None:
        """Block until no refresh is pending or running."""

        await self._idle.wait()

    async def refresh_and_wait(self) -> Snapshot:
        """Request a refresh and wait for the reload that serves it.

        The reload starts after this call, so it observes any write that
        completed before it. Its error is re-raised here. Without a running
        worker the cache is reloaded directly.
        """

        if not self.running:
            return await self._cache.reload()
        waiter: asyncio.Future = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        self.request_refresh()
        return await waiter

    async def _run_poller(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            LOGGER.debug("Polling interval elapsed; refresh requested")
            self.request_refresh()

    async def _run_worker(self) -> None:
        while True:
            await self._dirty.wait()
            if self._debounce:
                await asyncio.sleep(self._debounce)
            self._dirty.clear()
            waiters, self._waiters = self._waiters, []
            try:
                snapshot = await self._cache.reload()
            except FestivalFundError as error:
                self.failed_reloads += 1
                LOGGER.warning("Background refresh failed: %s", error)
                _settle(waiters, error=error)
            except Exception as error:
                self.failed_reloads += 1
                LOGGER.exception("Background refresh raised an unexpected error")
                _settle(waiters, error=error)
            else:
                self.completed_reloads += 1
                _settle(waiters, snapshot=snapshot)
            finally:
                for waiter in waiters:
                    if not waiter.done():
                        waiter.cancel()
                if not self._dirty.is_set():
                    self._idle.set()


def _settle(
    waiters: List[asyncio.Future],
    *,
    snapshot: Optional[Snapshot] = None,
    error: Optional[BaseException] = None,
) -> None:
    for waiter in waiters:
        if waiter.done():
            continue
        if error is not None:
            waiter.set_exception(error)
        else:
            waiter.set_result(snapshot)
