"""
Reconciliation loop.

Runs a background timer that periodically diffs source and target by key
and hands the stale keys to the DeltaSynchronizer.

State machine (one instance per engine):

    IDLE -> SCANNING -> APPLYING -> IDLE
    IDLE -> SCANNING -> IDLE               (nothing changed)

A tick may only start from IDLE. A timer fire that finds the previous tick
still SCANNING or APPLYING is dropped, never queued or run alongside it.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional

from common.constants import DEFAULT_PAGE_SIZE, DEFAULT_POLL_INTERVAL_SECONDS
from common.exceptions import PartialBatchFailure, SchedulerOverlapError
from common.logging_config import get_logger, tick_tag
from replicator.delta_sync import DeltaResult, DeltaSynchronizer
from replicator.retry import RetryPolicy
from store.base import RecordStore

logger = get_logger(__name__)


class SyncJobState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    APPLYING = "applying"


@dataclass(frozen=True)
class ChangeSet:
    """
    Keys found stale during one tick.

    missing: present in source, absent from target
    stale: present in both, source.updated_at newer than the source version
        the target copy was made from
    """
    missing: FrozenSet[str] = frozenset()
    stale: FrozenSet[str] = frozenset()

    @property
    def keys(self) -> List[str]:
        return sorted(self.missing | self.stale)

    def __len__(self) -> int:
        return len(self.missing) + len(self.stale)

    def __bool__(self) -> bool:
        return bool(self.missing or self.stale)

    def __contains__(self, key: object) -> bool:
        return key in self.missing or key in self.stale

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys)


def compute_change_set(
    source_versions: Dict[str, int],
    target_versions: Dict[str, Optional[int]]
) -> ChangeSet:
    """
    Diff two version maps by key lookup.

    source_versions maps each source key to its updated_at. target_versions
    maps each target key to the source updated_at its copy was made from;
    None means the copy's origin is unknown and it is treated as stale.

    Keys only present in the target are ignored: deletions are not propagated.
    """
    missing = set()
    stale = set()

    for key, source_updated_at in source_versions.items():
        if key not in target_versions:
            missing.add(key)
        elif target_versions[key] is None or source_updated_at > target_versions[key]:
            stale.add(key)

    return ChangeSet(missing=frozenset(missing), stale=frozenset(stale))


@dataclass
class TickResult:
    tick_id: int
    change_set: ChangeSet = field(default_factory=ChangeSet)
    delta: Optional[DeltaResult] = None
    error: Optional[str] = None
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "tick_id": self.tick_id,
            "changed_keys": self.change_set.keys,
            "delta": self.delta.to_dict() if self.delta else None,
            "error": self.error,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


class ReconciliationLoop:
    """
    Periodic drift detection between a source and a target store.

    Fires every poll_interval seconds. Ticks never overlap: the SyncJobState
    guards entry, not a lock on the stores.
    """

    def __init__(
        self,
        source: RecordStore,
        target: RecordStore,
        delta: DeltaSynchronizer,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        scan_page_size: int = DEFAULT_PAGE_SIZE,
        retry: Optional[RetryPolicy] = None
    ):
        """
        Initialize the reconciliation loop.

        Args:
            source: Authoritative store
            target: Derived store
            delta: Synchronizer applying each tick's ChangeSet
            poll_interval: Seconds between timer fires
            scan_page_size: Page size used to read keys and versions
            retry: Retry policy for the scan reads
        """
        self.source = source
        self.target = target
        self.delta = delta
        self.poll_interval = poll_interval
        self.scan_page_size = scan_page_size
        self.retry = retry or RetryPolicy()

        self.state = SyncJobState.IDLE
        self.running = False
        self.ticks_completed = 0
        self.dropped_ticks = 0
        self.last_result: Optional[TickResult] = None

        self._timer_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._tick_counter = 0

    async def start(self):
        """Start the reconciliation timer."""
        if self.running:
            logger.warning("Reconciliation loop already running")
            return

        self.running = True
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info(f"Reconciliation loop started [interval={self.poll_interval}s]")

    async def stop(self):
        """
        Stop scheduling new ticks.

        An in-flight tick is awaited, never cancelled, so its writes finish.
        """
        if not self.running:
            return

        self.running = False

        if self._timer_task:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

        if self._tick_task and not self._tick_task.done():
            logger.info(f"Waiting for in-flight tick ({self.state.value}) to finish")
            await self._tick_task

        logger.info("Reconciliation loop stopped")

    async def _timer_loop(self):
        while self.running:
            await asyncio.sleep(self.poll_interval)
            if self.running:
                self.fire()

    def fire(self) -> Optional[asyncio.Task]:
        """
        Start a tick if the loop is IDLE.

        Returns:
            The tick task, or None if the fire was dropped because the
            previous tick has not reached IDLE yet
        """
        if self.state is not SyncJobState.IDLE:
            self.dropped_ticks += 1
            logger.debug(f"Tick dropped: previous tick still {self.state.value}")
            return None

        self._tick_counter += 1
        self._transition(SyncJobState.IDLE, SyncJobState.SCANNING)
        self._tick_task = asyncio.create_task(self._run_tick(self._tick_counter))
        return self._tick_task

    async def run_tick(self) -> Optional[TickResult]:
        """Run one tick now and wait for it; None if a tick is already active."""
        task = self.fire()
        if task is None:
            return None
        return await task

    def _transition(self, expected: SyncJobState, new: SyncJobState) -> None:
        if self.state is not expected:
            raise SchedulerOverlapError(
                f"Cannot move to {new.value}: expected {expected.value}, "
                f"found {self.state.value}"
            )
        self.state = new

    async def _run_tick(self, tick_id: int) -> TickResult:
        tag = tick_tag(tick_id)
        result = TickResult(tick_id=tick_id)
        overlap = False

        try:
            result.change_set = await self._scan()

            if not result.change_set:
                logger.info(f"{tag} Everything is up to date")
            else:
                self._transition(SyncJobState.SCANNING, SyncJobState.APPLYING)
                logger.info(
                    f"{tag} {len(result.change_set)} pending change(s) "
                    f"({len(result.change_set.missing)} missing, "
                    f"{len(result.change_set.stale)} stale)"
                )
                result.delta = await self.delta.apply(result.change_set.keys)
                try:
                    result.delta.raise_for_failures()
                except PartialBatchFailure as e:
                    logger.warning(f"{tag} {e}; failed keys will be retried next tick")

        except SchedulerOverlapError:
            overlap = True
            raise
        except Exception as e:
            logger.error(f"{tag} Reconciliation tick failed: {e}", exc_info=True)
            result.error = f"{type(e).__name__}: {e}"
        finally:
            if not overlap:
                self.state = SyncJobState.IDLE

        result.finished_at = time.time()
        self.ticks_completed += 1
        self.last_result = result
        return result

    async def _scan(self) -> ChangeSet:
        source_versions, target_versions = await asyncio.gather(
            self.retry.call(self.source.versions, self.scan_page_size),
            self.retry.call(self.target.versions, self.scan_page_size, "source_updated_at"),
        )
        return compute_change_set(source_versions, target_versions)

    def status(self) -> dict:
        return {
            "state": self.state.value,
            "running": self.running,
            "poll_interval_seconds": self.poll_interval,
            "ticks_completed": self.ticks_completed,
            "dropped_ticks": self.dropped_ticks,
            "last_tick": self.last_result.to_dict() if self.last_result else None,
        }
