"""Sync engine for full, paginated and delta record replication."""

from replicator.bulk_sync import BulkSynchronizer, BulkSyncResult
from replicator.config import SyncConfig
from replicator.delta_sync import DeltaResult, DeltaSynchronizer
from replicator.engine import SyncEngine
from replicator.events import EventCounters, EventSink
from replicator.paginated_sync import PaginatedSynchronizer, SyncCursor
from replicator.reconciliation import (
    ChangeSet,
    ReconciliationLoop,
    SyncJobState,
    TickResult,
    compute_change_set,
)
from replicator.retry import RetryPolicy

__all__ = [
    "BulkSynchronizer",
    "BulkSyncResult",
    "SyncConfig",
    "DeltaResult",
    "DeltaSynchronizer",
    "SyncEngine",
    "EventCounters",
    "EventSink",
    "PaginatedSynchronizer",
    "SyncCursor",
    "ChangeSet",
    "ReconciliationLoop",
    "SyncJobState",
    "TickResult",
    "compute_change_set",
    "RetryPolicy",
]
