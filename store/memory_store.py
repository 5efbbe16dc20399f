"""In-memory record store."""

import asyncio
from typing import Any, Dict, List, Optional

from common.exceptions import DuplicateKeyError, StoreUnavailableError
from common.logging_config import get_logger
from common.types import Record, UpdateResult
from store.base import RecordStore
from store.clock import LogicalClock, get_default_clock

logger = get_logger(__name__)


class InMemoryRecordStore(RecordStore):
    """
    Dict-backed RecordStore.

    Each operation suspends at most once, before touching the index, so a
    write is applied without interleaving and concurrent upserts on one key
    can never produce duplicates.
    """

    def __init__(
        self,
        name: str = "memory",
        clock: Optional[LogicalClock] = None,
        latency: float = 0.0
    ):
        """
        Initialize the store.

        Args:
            name: Store name used in logs (e.g. 'source', 'target')
            clock: Clock stamping created_at/updated_at, shared with the peer store
            latency: Simulated I/O delay per operation in seconds
        """
        self.name = name
        self.clock = clock or get_default_clock()
        self.latency = latency
        self._records: Dict[str, Record] = {}
        self._pending_failures = 0

    def fail_next(self, count: int = 1) -> None:
        """Make the next `count` operations raise StoreUnavailableError."""
        self._pending_failures += count

    async def _io(self, operation: str) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        if self._pending_failures > 0:
            self._pending_failures -= 1
            raise StoreUnavailableError(f"{self.name} store unavailable during {operation}")

    async def insert(self, record: Record) -> Record:
        await self._io("insert")

        if record.key in self._records:
            raise DuplicateKeyError(record.key)

        stored = record.copy()
        now = self.clock.now()
        if stored.created_at is None:
            stored.created_at = now
        if stored.updated_at is None:
            stored.updated_at = now

        self._records[stored.key] = stored
        return stored.copy()

    async def upsert(self, key: str, record: Record) -> Record:
        await self._io("upsert")

        now = self.clock.now()
        existing = self._records.get(key)
        if existing is None:
            stored = Record(
                key=key,
                payload=record.copy().payload,
                created_at=record.created_at if record.created_at is not None else now,
                updated_at=now,
                source_updated_at=record.source_updated_at,
            )
            self._records[key] = stored
        else:
            existing.payload = record.copy().payload
            existing.updated_at = now
            existing.source_updated_at = record.source_updated_at
            stored = existing

        return stored.copy()

    async def find(
        self,
        filter: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        skip: int = 0
    ) -> List[Record]:
        await self._io("find")

        if filter and set(filter) == {"key"}:
            record = self._records.get(filter["key"])
            matches = [record] if record is not None else []
        else:
            matches = [r for r in self._records.values() if r.matches(filter)]

        end = None if limit is None else skip + limit
        return [r.copy() for r in matches[skip:end]]

    async def update(self, filter: Dict[str, Any], patch: Dict[str, Any]) -> UpdateResult:
        if "key" in patch:
            raise ValueError("Record keys cannot be changed by update()")

        await self._io("update")

        matched = 0
        modified = 0
        for record in self._records.values():
            if not record.matches(filter):
                continue
            matched += 1
            if any(record.payload.get(name) != value for name, value in patch.items()):
                modified += 1
            record.payload.update(patch)
            record.updated_at = self.clock.now()

        if matched == 0:
            logger.debug(f"update() on {self.name} matched no records for filter {filter}")

        return UpdateResult(matched=matched, modified=modified)

    async def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        await self._io("count")

        if not filter:
            return len(self._records)
        return sum(1 for r in self._records.values() if r.matches(filter))

    def remove(self, key: str) -> bool:
        """
        Drop a record from the store.

        Replication never deletes; this exists to simulate records vanishing
        from the source between a scan and a fetch.
        """
        return self._records.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._records)
