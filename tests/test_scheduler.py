import asyncio
from datetime import datetime, timedelta, timezone

from ledger_server.pricing.models import SyncReport
from ledger_server.runtime.scheduler import SyncPoller


class CountingSync:
    def __init__(self) -> None:
        self.runs = 0

    def run_sync(self) -> SyncReport:
        self.runs += 1
        return SyncReport(timestamp="2024-03-05T12:00:00Z")


class Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def test_poller_runs_once_per_interval() -> None:
    sync = CountingSync()
    clock = Clock()
    poller = SyncPoller(sync, poll_interval_seconds=300, clock=clock)

    async def scenario() -> list[bool]:
        seen = [await poller.should_poll()]
        await poller.poll()
        seen.append(await poller.should_poll())
        clock.now += timedelta(seconds=299)
        seen.append(await poller.should_poll())
        clock.now += timedelta(seconds=1)
        seen.append(await poller.should_poll())
        return seen

    assert asyncio.run(scenario()) == [True, False, False, True]
    assert sync.runs == 1
    assert poller.last_report is not None


def test_run_forever_stops_on_event() -> None:
    sync = CountingSync()
    poller = SyncPoller(sync, poll_interval_seconds=3600, clock=Clock())

    async def scenario() -> None:
        stop = asyncio.Event()
        task = asyncio.create_task(poller.run_forever(stop, tick_seconds=0.01))
        await asyncio.sleep(0.05)
        stop.set()
        await task

    asyncio.run(scenario())
    assert sync.runs == 1
