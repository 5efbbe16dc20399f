"""
Record store interface.

Source and target stores both implement RecordStore. Every operation is a
coroutine, store I/O being the only suspension point of a sync run.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from common.constants import DEFAULT_PAGE_SIZE
from common.types import Record, UpdateResult


class RecordStore(ABC):
    """
    Abstract record store.

    Contract:
    - keys are unique within a store
    - updated_at is strictly greater after every successful write than
      before, and comparable with the other store's values
    - find() returns records in stable insertion order
    """

    name: str = "store"

    @abstractmethod
    async def insert(self, record: Record) -> Record:
        """
        Store a new record.

        Raises:
            DuplicateKeyError: If the key already exists
            StoreUnavailableError: On transient I/O failure
        """

    @abstractmethod
    async def upsert(self, key: str, record: Record) -> Record:
        """
        Insert the record, or replace the payload of the existing one.

        The record's source_updated_at is stored as given. Never fails on
        an existing key.
        """

    @abstractmethod
    async def find(
        self,
        filter: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        skip: int = 0
    ) -> List[Record]:
        """Return matching records in insertion order, empty list if none."""

    @abstractmethod
    async def update(self, filter: Dict[str, Any], patch: Dict[str, Any]) -> UpdateResult:
        """Patch payload fields of matching records; zero matches is a no-op."""

    @abstractmethod
    async def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        """Return the number of matching records."""

    async def get(self, key: str) -> Optional[Record]:
        """Return the record stored under key, or None."""
        records = await self.find({"key": key}, limit=1)
        return records[0] if records else None

    async def versions(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        version_field: str = "updated_at"
    ) -> Dict[str, Optional[int]]:
        """
        Return {key: version} for every record, fetched page by page.

        Args:
            page_size: Records fetched per find() call
            version_field: "updated_at", or "source_updated_at" to read the
                source version each target copy was made from

        Returns:
            Mapping of record key to its version value
        """
        versions: Dict[str, Optional[int]] = {}
        skip = 0
        while True:
            page = await self.find({}, limit=page_size, skip=skip)
            for record in page:
                versions[record.key] = getattr(record, version_field)
            if len(page) < page_size:
                return versions
            skip += page_size
