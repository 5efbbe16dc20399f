"""
Delta synchronizer.

Applies an explicit set of changed keys from source to target, the only
path that avoids rescanning the whole dataset.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from common.constants import DEFAULT_DELTA_CONCURRENCY
from common.exceptions import PartialBatchFailure, RecordNotFoundError
from common.logging_config import get_logger
from common.types import Record
from replicator.events import EventSink
from replicator.retry import RetryPolicy
from store.base import RecordStore

logger = get_logger(__name__)


@dataclass
class DeltaResult:
    """Per-key outcome of one delta apply."""
    applied_keys: List[str] = field(default_factory=list)
    failed_keys: Dict[str, str] = field(default_factory=dict)
    skipped_keys: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_keys

    def raise_for_failures(self) -> None:
        """
        Raises:
            PartialBatchFailure: If any key failed
        """
        if self.failed_keys:
            raise PartialBatchFailure(self.failed_keys, self.applied_keys)

    def to_dict(self) -> dict:
        return {
            "applied_keys": list(self.applied_keys),
            "failed_keys": dict(self.failed_keys),
            "skipped_keys": list(self.skipped_keys),
        }


class DeltaSynchronizer:
    """
    Fetches each changed key from the source and upserts it into the target.

    Keys are independent: one key failing never stops the others.
    """

    def __init__(
        self,
        source: RecordStore,
        target: RecordStore,
        events: Optional[EventSink] = None,
        concurrency: int = DEFAULT_DELTA_CONCURRENCY,
        retry: Optional[RetryPolicy] = None
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.source = source
        self.target = target
        self.events = events or EventSink()
        self.concurrency = concurrency
        self.retry = retry or RetryPolicy()

    async def apply(self, keys: Iterable[str]) -> DeltaResult:
        """
        Replicate the given keys.

        Args:
            keys: Changed record keys; duplicates are collapsed

        Returns:
            DeltaResult listing applied, failed and skipped keys. Keys that
            vanished from the source are skipped, not failed.
        """
        unique_keys = list(dict.fromkeys(keys))
        result = DeltaResult()

        if not unique_keys:
            return result

        logger.info(f"Syncing {len(unique_keys)} changed record(s) into {self.target.name}")

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(key: str) -> Record:
            async with semaphore:
                return await self._apply_key(key)

        outcomes = await asyncio.gather(
            *(bounded(key) for key in unique_keys),
            return_exceptions=True
        )

        for key, outcome in zip(unique_keys, outcomes):
            if isinstance(outcome, RecordNotFoundError):
                logger.info(f"Skipping {key!r}: no longer in {self.source.name}")
                result.skipped_keys.append(key)
            elif isinstance(outcome, BaseException):
                logger.warning(f"Failed to sync {key!r}: {outcome}")
                result.failed_keys[key] = f"{type(outcome).__name__}: {outcome}"
            else:
                result.applied_keys.append(key)

        logger.info(
            f"Delta sync: {len(result.applied_keys)} applied, "
            f"{len(result.failed_keys)} failed, {len(result.skipped_keys)} skipped"
        )
        return result

    async def _apply_key(self, key: str) -> Record:
        record = await self.retry.call(self.source.get, key)
        if record is None:
            raise RecordNotFoundError(key)

        stored = await self.retry.call(self.target.upsert, key, record.replica())
        self.events.record_sent()
        logger.debug(f"{key!r} is up to date in {self.target.name}")
        return stored
