"""
Shared fixtures for the ledger tests.

Everything runs against the in-memory blob store and a controllable
clock, so no test touches the disk or the network (unless it asks
for tmp_path) and interest periods are exact.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from bankledger.services.ledger import LedgerService
from bankledger.services.storage import BlobLedgerStorage, InMemoryBlobStore


START = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: float = 0, seconds: float = 0) -> datetime:
        self.now += timedelta(days=days, seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def storage(store) -> BlobLedgerStorage:
    return BlobLedgerStorage(store)


@pytest_asyncio.fixture
async def ledger(storage, clock) -> LedgerService:
    return await LedgerService.open(storage, clock=clock)


@pytest.fixture
def clock_factory():
    """For tests that need a second, independent clock."""
    return FakeClock
