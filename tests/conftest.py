"""Shared pytest fixtures for all tests."""

import random

import pytest

from common.types import Record
from replicator.events import EventSink
from replicator.retry import RetryPolicy
from store.clock import LogicalClock
from store.memory_store import InMemoryRecordStore

OWNERS = ["Ana", "Bruno", "Chen", "Dana", "Emeka", "Farah", "Goran", "Hana"]


def make_companies(count: int, seed: int = 7):
    """
    Build company records like the ones replicated in production.

    Names are unique; "Acme" is always the first record.
    """
    rng = random.Random(seed)
    companies = [Record(key="Acme", payload={"owner": "Ana", "amount": 1200})]
    for i in range(1, count):
        companies.append(Record(
            key=f"Company {i:03d}",
            payload={"owner": rng.choice(OWNERS), "amount": rng.randint(100, 99999)},
        ))
    return companies


@pytest.fixture
def clock():
    """Clock shared by the source and target stores."""
    return LogicalClock()


@pytest.fixture
def source(clock):
    return InMemoryRecordStore("source", clock=clock)


@pytest.fixture
def target(clock):
    return InMemoryRecordStore("target", clock=clock)


@pytest.fixture
def events():
    return EventSink()


@pytest.fixture
def fast_retry():
    """Retry policy without backoff delays."""
    return RetryPolicy(max_retries=2, base_delay=0.0)


@pytest.fixture
def no_retry():
    return RetryPolicy(max_retries=0, base_delay=0.0)


@pytest.fixture
def seed():
    """
    Return a coroutine function inserting N company records into a store.

    Returns:
        async seed(store, count) -> list of stored records
    """
    async def _seed(store, count):
        stored = []
        for record in make_companies(count):
            stored.append(await store.insert(record))
        return stored

    return _seed
