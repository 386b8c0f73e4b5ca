"""
Periodic relay-list refresh using APScheduler.

APScheduler's AsyncIOScheduler runs the job on the host application's event
loop. No threads, and request handling never waits on it.

Concurrency guard:
  asyncio.Lock prevents two refreshes from running at once (e.g. the interval
  fires while a manual POST /refresh is still in progress). The busy one wins,
  the other is skipped.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from torblock.errors import TorBlockError
from torblock.models import RelayList
from torblock.storage.relay_list_store import RelayListStore

logger = logging.getLogger(__name__)

JOB_ID = "relay_list_refresh"

FetchFunc = Callable[[], Awaitable[RelayList]]


class RefreshScheduler:
    """
    Owns the background refresh job for one RelayListStore.

    start() and stop() are the handle the owner uses to control it; stop()
    leaves whatever list was already loaded in place.
    """

    def __init__(
        self,
        fetch: FetchFunc,
        store: RelayListStore,
        interval_seconds: float,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._fetch = fetch
        self._store = store
        self.interval_seconds = interval_seconds
        self._scheduler = scheduler or AsyncIOScheduler()
        # AsyncIOScheduler.shutdown only queues the stop on the loop, so its own
        # `running` flag lags behind; this one changes immediately.
        self._started = False
        self._shut_down = False
        self._lock = asyncio.Lock()
        self._background: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._started

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def refresh(self) -> dict:
        """
        Execute one refresh cycle: fetch → parse → swap.

        Never raises. On failure the previous list stays untouched and the
        error is only logged and recorded; the next tick is the retry.
        """
        if self._lock.locked():
            logger.info("Refresh skipped, previous refresh still running")
            return {"status": "skipped"}

        async with self._lock:
            try:
                relay_list = await self._fetch()
            except TorBlockError as exc:
                error_msg = str(exc)
                logger.error("Refresh failed, keeping previous list: %s", error_msg)
                self._store.record_failure(error_msg)
                return {"status": "failed", "error": error_msg}
            except Exception as exc:  # pylint: disable=broad-except
                error_msg = str(exc)
                logger.exception("Unhandled refresh error: %s", error_msg)
                self._store.record_failure(error_msg)
                return {"status": "failed", "error": error_msg}

            self._store.replace(relay_list)

        logger.info("Relay list refreshed: %d records", len(relay_list.records))
        return {"status": "success", "records": len(relay_list.records)}

    def trigger(self) -> dict:
        """
        Start an immediate refresh in the background.

        Returns straight away; the caller is not blocked by the fetch.
        """
        if self._lock.locked():
            return {"status": "conflict", "message": "Refresh already in progress"}

        self._background = asyncio.create_task(self.refresh())
        return {"status": "refresh_triggered", "message": "Refresh started in background"}

    def start(self) -> None:
        """Start the periodic refresh. Must be called from a running event loop."""
        if self._started:
            return
        if self._shut_down:
            # The previous instance may still have its shutdown queued on the loop
            self._scheduler = AsyncIOScheduler()
            self._shut_down = False

        self._scheduler.add_job(
            self.refresh,
            trigger="interval",
            seconds=self.interval_seconds,
            id=JOB_ID,
            replace_existing=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        self._started = True
        logger.info("Scheduler started (interval=%ss)", self.interval_seconds)

    def stop(self) -> None:
        """Stop the timer without waiting for a running job. Safe to call twice."""
        if not self._started:
            return
        self._started = False
        self._shut_down = True
        self._scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
