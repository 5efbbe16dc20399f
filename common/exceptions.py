"""Custom exception classes for stores and synchronizers."""

from typing import Dict, List, Optional


class SyncError(Exception):
    """
    Base exception class for all replication errors.
    """
    pass


class DuplicateKeyError(SyncError):
    """
    Raised when inserting a record whose key already exists in the store.
    """

    def __init__(self, key: str):
        super().__init__(f"Record with key {key!r} already exists")
        self.key = key


class StoreUnavailableError(SyncError):
    """
    Raised on a transient I/O failure of a record store.
    """
    pass


class RecordNotFoundError(SyncError):
    """
    Raised when a changed key no longer exists in the source store.
    """

    def __init__(self, key: str):
        super().__init__(f"Record with key {key!r} not found")
        self.key = key


class PartialBatchFailure(SyncError):
    """
    Raised when some keys of a delta batch failed while the rest were applied.
    """

    def __init__(self, failed_keys: Dict[str, str], applied_keys: List[str]):
        super().__init__(
            f"{len(failed_keys)} key(s) failed, {len(applied_keys)} applied: "
            f"{sorted(failed_keys)}"
        )
        self.failed_keys = dict(failed_keys)
        self.applied_keys = list(applied_keys)


class SchedulerOverlapError(SyncError):
    """
    Raised when two reconciliation ticks are active at once.

    This is a programming error, the reconciliation loop never catches it.
    """
    pass


class SyncAbortedError(SyncError):
    """
    Raised when a bulk or paginated sync aborts part way through.

    Re-running is safe, every write is an upsert.
    """

    def __init__(self, message: str, applied: int, cursor: Optional[object] = None):
        super().__init__(f"{message} ({applied} record(s) applied before failure)")
        self.applied = applied
        self.cursor = cursor
