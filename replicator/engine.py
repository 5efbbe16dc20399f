"""SyncEngine - wires the synchronizers and the reconciliation loop."""

from typing import Iterable, Optional

from common.logging_config import get_logger
from replicator.bulk_sync import BulkSyncResult, BulkSynchronizer
from replicator.config import SyncConfig
from replicator.delta_sync import DeltaResult, DeltaSynchronizer
from replicator.events import EventSink
from replicator.paginated_sync import PaginatedSynchronizer, SyncCursor
from replicator.reconciliation import ReconciliationLoop, TickResult
from replicator.retry import RetryPolicy
from store.base import RecordStore

logger = get_logger(__name__)


class SyncEngine:
    """
    Keeps a target store in sync with a source store.

    Example:
        engine = SyncEngine(source, target, SyncConfig(page_size=5))
        await engine.paginated_sync()       # catch up in batches
        await engine.start()                # poll for changes
        ...
        await engine.stop()

        # Or as an async context manager (seeds, then polls)
        async with SyncEngine(source, target) as engine:
            ...
    """

    def __init__(
        self,
        source: RecordStore,
        target: RecordStore,
        config: Optional[SyncConfig] = None,
        events: Optional[EventSink] = None
    ):
        """
        Initialize sync engine.

        Args:
            source: Authoritative store
            target: Derived store
            config: Engine options (defaults read from the environment)
            events: Event sink shared by every synchronizer
        """
        self.source = source
        self.target = target
        self.config = (config or SyncConfig.from_env()).validate()
        self.events = events or EventSink()
        self.retry = RetryPolicy(
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
        )

        self.bulk = BulkSynchronizer(source, target, self.events, retry=self.retry)
        self.paginated = PaginatedSynchronizer(
            source, target, self.events,
            page_size=self.config.page_size,
            retry=self.retry,
        )
        self.delta = DeltaSynchronizer(
            source, target, self.events,
            concurrency=self.config.delta_concurrency,
            retry=self.retry,
        )
        self.loop = ReconciliationLoop(
            source, target, self.delta,
            poll_interval=self.config.poll_interval_seconds,
            scan_page_size=self.config.page_size,
            retry=self.retry,
        )

    async def full_sync(self) -> BulkSyncResult:
        """Copy the whole source in one pass."""
        return await self.bulk.run()

    async def paginated_sync(
        self,
        page_size: Optional[int] = None,
        cursor: Optional[SyncCursor] = None,
        max_pages: Optional[int] = None
    ) -> SyncCursor:
        """
        Copy the source in pages.

        Args:
            page_size: Override of config.page_size for this run
            cursor: Cursor of an unfinished run to resume
            max_pages: Pages to process in this call (None = all)

        Returns:
            The sync cursor
        """
        synchronizer = self.paginated
        if page_size is not None and page_size != self.paginated.page_size:
            synchronizer = PaginatedSynchronizer(
                self.source, self.target, self.events,
                page_size=page_size,
                retry=self.retry,
            )
        return await synchronizer.run(cursor=cursor, max_pages=max_pages)

    async def apply_changes(self, keys: Iterable[str]) -> DeltaResult:
        """Replicate an explicit set of changed keys."""
        return await self.delta.apply(keys)

    async def reconcile_once(self) -> Optional[TickResult]:
        """Run one reconciliation tick now; None if a tick is already active."""
        return await self.loop.run_tick()

    async def seed(self) -> None:
        """Run the configured initial sync."""
        if self.config.seed_strategy == "full":
            result = await self.full_sync()
            logger.info(f"Initial seed complete: {result.processed} records")
        else:
            cursor = await self.paginated_sync()
            logger.info(
                f"Initial seed complete: {cursor.records_applied} records "
                f"in {cursor.pages_completed} page(s)"
            )

    async def start(self) -> None:
        """Seed the target if configured, then start polling for changes."""
        if self.config.initial_seed:
            await self.seed()
        await self.loop.start()

    async def stop(self) -> None:
        """Stop polling; an in-flight tick finishes first."""
        await self.loop.stop()

    def status(self) -> dict:
        """
        Get current engine status.

        Returns:
            Dict with loop state, tick statistics, counters and config
        """
        return {
            "source": self.source.name,
            "target": self.target.name,
            "loop": self.loop.status(),
            "counters": self.events.snapshot().to_dict(),
            "config": self.config.to_dict(),
        }

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *args):
        await self.stop()
