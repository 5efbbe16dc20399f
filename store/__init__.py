"""Record stores replicated by the sync engine."""

from store.base import RecordStore
from store.clock import LogicalClock, get_default_clock
from store.memory_store import InMemoryRecordStore

__all__ = [
    "RecordStore",
    "LogicalClock",
    "get_default_clock",
    "InMemoryRecordStore",
]
