"""
Bulk synchronizer.

Copies the entire source store into the target in one pass. Meant for
small datasets and initial seeding: the whole source is loaded in memory.
"""

from dataclasses import dataclass
from typing import Optional

from common.exceptions import SyncAbortedError
from common.logging_config import get_logger
from replicator.events import EventSink
from replicator.retry import RetryPolicy
from store.base import RecordStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class BulkSyncResult:
    processed: int


class BulkSynchronizer:
    """Replicates every source record into the target by upsert."""

    def __init__(
        self,
        source: RecordStore,
        target: RecordStore,
        events: Optional[EventSink] = None,
        retry: Optional[RetryPolicy] = None
    ):
        self.source = source
        self.target = target
        self.events = events or EventSink()
        self.retry = retry or RetryPolicy()

    async def run(self) -> BulkSyncResult:
        """
        Ensure every record in the source exists, with equal payload, in the target.

        Safe to re-run: writes are upserts keyed by record key, so a second
        run over an unchanged source leaves the target's record count as is.

        Returns:
            BulkSyncResult with the number of records processed

        Raises:
            SyncAbortedError: If the source read or a target write fails after retries
        """
        self.events.reset()
        applied = 0

        try:
            records = await self.retry.call(self.source.find, {})
            logger.info(
                f"Full sync: copying {len(records)} records "
                f"from {self.source.name} to {self.target.name}"
            )

            for record in records:
                await self.retry.call(self.target.upsert, record.key, record.replica())
                applied += 1
                self.events.record_seeded()
                self.events.record_sent()

        except Exception as e:
            logger.error(f"Full sync aborted after {applied} records: {e}")
            raise SyncAbortedError("Full sync aborted", applied) from e

        logger.info(f"Full sync complete: {applied} records synced")
        return BulkSyncResult(processed=applied)
