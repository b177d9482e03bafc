import asyncio
from typing import List, Optional

import pytest

from awb_tracker.core.config import Settings
from awb_tracker.core.errors import TrackingLookupError
from awb_tracker.models.tracking import TrackRecord
from awb_tracker.services.broadcaster import EventBroadcaster
from awb_tracker.services.job_engine import JobEngine
from awb_tracker.services.job_store import InMemoryJobStore

FIXED_RECORD = TrackRecord(
    status="DELIVERED",
    origin="KUL",
    dest="SIN",
    pcs="2",
    gross_wt="15.5",
    last_act="Delivered to consignee",
    last_act_dt="01 Mar 2024 10:15",
    do_url="https://example.test/do/123.pdf",
)


class StubLookup:
    """Stands in for the scraper; records every call.

    ``fail_on`` holds AWB numbers that raise. ``hold_on`` is a 1-based call
    number that blocks until ``release`` is set, so a test can act while that
    lookup is in flight.
    """

    def __init__(self, record: TrackRecord = FIXED_RECORD, fail_on=(), hold_on: Optional[int] = None):
        self.record = record
        self.fail_on = set(fail_on)
        self.hold_on = hold_on
        self.calls = []
        self.holding = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, prefix: str, awb_no: str) -> TrackRecord:
        self.calls.append((prefix, awb_no))
        if self.hold_on is not None and len(self.calls) == self.hold_on:
            self.holding.set()
            await self.release.wait()
        if awb_no in self.fail_on:
            raise TrackingLookupError("tracking site unavailable")
        return self.record


class RecordingBroadcaster(EventBroadcaster):
    def __init__(self):
        super().__init__(queue_size=100)
        self.events: List = []

    def publish(self, event):
        self.events.append(event)
        return super().publish(event)

    def of_type(self, event_type: str, job_id: Optional[int] = None):
        return [
            e for e in self.events
            if e.type == event_type and (job_id is None or e.job_id == job_id)
        ]


def make_csv(values, header: str = "MAWB No") -> bytes:
    lines = ["Ref," + header]
    for index, value in enumerate(values, start=1):
        lines.append(f"R{index},{value}")
    return ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture
def test_settings():
    return Settings(min_delay_ms=50, default_delay_ms=50)


@pytest.fixture
def store():
    return InMemoryJobStore()


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def lookup():
    return StubLookup()


@pytest.fixture
def engine(store, broadcaster, lookup, test_settings):
    return JobEngine(store, broadcaster, lookup, config=test_settings)
