"""Shared data type definitions (Record, UpdateResult)."""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Record:
    """
    A replicated record.

    The key is the unique business identifier (e.g. a company name); payload
    holds every other field. Timestamps are logical clock values assigned by
    the store that holds the record. On a target copy, source_updated_at is
    the source updated_at it was replicated from.
    """
    key: str
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    source_updated_at: Optional[int] = None

    def copy(self) -> 'Record':
        """Return a deep copy so callers never share payload dicts with a store."""
        return Record(
            key=self.key,
            payload=copy.deepcopy(self.payload),
            created_at=self.created_at,
            updated_at=self.updated_at,
            source_updated_at=self.source_updated_at,
        )

    def replica(self) -> 'Record':
        """Copy to write into a target, tagged with the source version it carries."""
        replica = self.copy()
        replica.source_updated_at = self.updated_at
        return replica

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a field by name, with "key" addressing the record key."""
        if name == "key":
            return self.key
        return self.payload.get(name, default)

    def matches(self, filter: Optional[Dict[str, Any]]) -> bool:
        """Return True if every filter field equals the record's field."""
        if not filter:
            return True
        missing = object()
        return all(self.get(name, missing) == value for name, value in filter.items())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a plain dict."""
        return {
            "key": self.key,
            "payload": copy.deepcopy(self.payload),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "source_updated_at": self.source_updated_at,
        }


@dataclass(frozen=True)
class UpdateResult:
    """
    Outcome of a filtered update.
    """
    matched: int
    modified: int
