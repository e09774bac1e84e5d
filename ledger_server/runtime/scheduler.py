"""Periodic price sync trigger."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from ledger_server.ledger.timestamps import utc_now
from ledger_server.pricing.models import SyncReport
from ledger_server.services.sync_service import SyncService

LOGGER = logging.getLogger(__name__)


class SyncPoller:
    """Runs ``SyncService.run_sync`` at most once per interval.

    Only last-poll bookkeeping lives here; every run re-reads the ledger.

    Usage from a loop::

        if await poller.should_poll():
            await poller.poll()
    """

    def __init__(
        self,
        sync: SyncService,
        poll_interval_seconds: int = 300,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.sync = sync
        self.poll_interval_seconds = max(1, poll_interval_seconds)
        self.clock = clock
        self._last_poll_time: datetime | None = None
        self._is_running = False
        self.last_report: SyncReport | None = None

    async def should_poll(self) -> bool:
        if self._is_running:
            return False
        if self._last_poll_time is None:
            return True
        elapsed = (self.clock() - self._last_poll_time).total_seconds()
        return elapsed >= self.poll_interval_seconds

    async def poll(self) -> SyncReport | None:
        if self._is_running:
            LOGGER.warning("sync poller already running")
            return None
        self._is_running = True
        started = self.clock()
        try:
            report = await asyncio.to_thread(self.sync.run_sync)
            self._last_poll_time = started
            self.last_report = report
            return report
        except Exception:
            LOGGER.exception("sync poll failed")
            self._last_poll_time = started
            return None
        finally:
            self._is_running = False

    async def run_forever(self, stop: asyncio.Event, tick_seconds: float = 5.0) -> None:
        LOGGER.info("sync poller started: interval_seconds=%s", self.poll_interval_seconds)
        while not stop.is_set():
            if await self.should_poll():
                await self.poll()
            try:
                await asyncio.wait_for(stop.wait(), timeout=tick_seconds)
            except asyncio.TimeoutError:
                continue
        LOGGER.info("sync poller stopped")
