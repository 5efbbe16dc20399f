"""
Paginated synchronizer.

Replicates the source into the target in fixed-size pages, resumable
through a SyncCursor.
"""

import asyncio
from dataclasses import asdict, dataclass
from typing import Optional

from common.constants import DEFAULT_PAGE_SIZE
from common.exceptions import SyncAbortedError
from common.logging_config import get_logger
from common.types import Record
from replicator.events import EventSink
from replicator.retry import RetryPolicy
from store.base import RecordStore

logger = get_logger(__name__)


def total_pages(record_count: int, page_size: int) -> int:
    """ceil(record_count / page_size) without float rounding."""
    return -(-record_count // page_size)


@dataclass
class SyncCursor:
    """
    Progress of a paginated sync.

    total_expected is the page count computed from the source size sampled
    when the run started; records added later wait for the next run.
    """
    page_size: int
    pages_completed: int = 0
    total_expected: int = 0
    records_applied: int = 0

    @property
    def done(self) -> bool:
        return self.pages_completed >= self.total_expected

    @property
    def next_skip(self) -> int:
        return self.pages_completed * self.page_size

    def to_dict(self) -> dict:
        data = asdict(self)
        data["done"] = self.done
        return data


class PaginatedSynchronizer:
    """Copies the source page by page, bounding the work of each step."""

    def __init__(
        self,
        source: RecordStore,
        target: RecordStore,
        events: Optional[EventSink] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        retry: Optional[RetryPolicy] = None
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        self.source = source
        self.target = target
        self.events = events or EventSink()
        self.page_size = page_size
        self.retry = retry or RetryPolicy()

    async def run(
        self,
        cursor: Optional[SyncCursor] = None,
        max_pages: Optional[int] = None
    ) -> SyncCursor:
        """
        Sync the source into the target page by page.

        Args:
            cursor: Cursor returned by an earlier, unfinished run to resume from.
                None or a finished cursor starts a fresh run.
            max_pages: Stop after this many pages in this call (None = run to the end)

        Returns:
            The cursor; done is True once every expected page was applied

        Raises:
            SyncAbortedError: If a page fails after retries. Its cursor points at
                the failed page, so passing it back in resumes there.
        """
        if cursor is None or cursor.done:
            cursor = await self._start()
        else:
            logger.info(
                f"Resuming paginated sync at page {cursor.pages_completed}/{cursor.total_expected}"
            )

        pages_this_call = 0
        while not cursor.done:
            if max_pages is not None and pages_this_call >= max_pages:
                logger.info(
                    f"Paginated sync paused after {pages_this_call} page(s) "
                    f"[{cursor.pages_completed}/{cursor.total_expected}]"
                )
                return cursor

            await self._sync_page(cursor)
            pages_this_call += 1

        logger.info(
            f"Paginated sync complete: {cursor.pages_completed} page(s), "
            f"{cursor.records_applied} records synced"
        )
        return cursor

    async def _start(self) -> SyncCursor:
        self.events.reset()

        try:
            record_count = await self.retry.call(self.source.count, {})
        except Exception as e:
            raise SyncAbortedError("Paginated sync aborted counting source records", 0) from e

        cursor = SyncCursor(
            page_size=self.page_size,
            total_expected=total_pages(record_count, self.page_size),
        )
        logger.info(
            f"Paginated sync: {record_count} records in {cursor.total_expected} page(s) "
            f"of {self.page_size} from {self.source.name} to {self.target.name}"
        )
        return cursor

    async def _sync_page(self, cursor: SyncCursor) -> None:
        page_number = cursor.pages_completed

        try:
            page = await self.retry.call(
                self.source.find, {}, limit=cursor.page_size, skip=cursor.next_skip
            )
        except Exception as e:
            raise SyncAbortedError(
                f"Paginated sync aborted fetching page {page_number}",
                cursor.records_applied,
                cursor,
            ) from e

        results = await asyncio.gather(
            *(self._upsert(record) for record in page),
            return_exceptions=True
        )

        failures = [r for r in results if isinstance(r, BaseException)]

        # A page counts only once every upsert on it succeeded; a resume
        # rewrites the whole page.
        if failures:
            logger.error(
                f"Page {page_number}: {len(failures)}/{len(page)} upserts failed: {failures[0]}"
            )
            raise SyncAbortedError(
                f"Paginated sync aborted on page {page_number}",
                cursor.records_applied + len(page) - len(failures),
                cursor,
            ) from failures[0]

        cursor.records_applied += len(page)
        cursor.pages_completed += 1
        self.events.record_seeded(len(page))
        self.events.record_sent(len(page))
        logger.debug(
            f"Page {page_number} synced ({len(page)} records) "
            f"[{cursor.pages_completed}/{cursor.total_expected}]"
        )

    async def _upsert(self, record: Record) -> Record:
        return await self.retry.call(self.target.upsert, record.key, record.replica())
