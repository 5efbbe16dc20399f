"""Tests for the delta synchronizer."""

import asyncio

import pytest

from common.exceptions import PartialBatchFailure, StoreUnavailableError
from common.types import Record
from replicator.bulk_sync import BulkSynchronizer
from replicator.delta_sync import DeltaResult, DeltaSynchronizer
from store.memory_store import InMemoryRecordStore


class FlakyTarget(InMemoryRecordStore):
    """Target whose upserts always fail for selected keys."""

    def __init__(self, *args, broken_keys=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.broken_keys = set(broken_keys)

    async def upsert(self, key, record):
        if key in self.broken_keys:
            raise StoreUnavailableError(f"cannot write {key}")
        return await super().upsert(key, record)


class ConcurrencyProbe(InMemoryRecordStore):
    """Target tracking the peak number of concurrent upserts."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.active = 0
        self.peak = 0

    async def upsert(self, key, record):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.005)
            return await super().upsert(key, record)
        finally:
            self.active -= 1


class TestDeltaSync:
    """Test applying explicit change sets."""

    @pytest.mark.asyncio
    async def test_applies_only_given_keys(self, source, target, events, seed):
        await seed(source, 10)

        result = await DeltaSynchronizer(source, target, events).apply(["Acme", "Company 003"])

        assert result.applied_keys == ["Acme", "Company 003"]
        assert result.failed_keys == {}
        assert await target.count() == 2
        assert events.events_sent == 2

    @pytest.mark.asyncio
    async def test_updated_record_reaches_target(self, source, target, events, seed):
        await seed(source, 5)
        await BulkSynchronizer(source, target, events).run()
        await source.update({"key": "Acme"}, {"owner": "Juan"})
        sent_before = events.events_sent

        await DeltaSynchronizer(source, target, events).apply(["Acme"])

        assert (await target.get("Acme")).payload == (await source.get("Acme")).payload
        assert events.events_sent == sent_before + 1

    @pytest.mark.asyncio
    async def test_duplicate_keys_are_collapsed(self, source, target, events, seed):
        await seed(source, 3)

        result = await DeltaSynchronizer(source, target, events).apply(["Acme", "Acme", "Acme"])

        assert result.applied_keys == ["Acme"]
        assert events.events_sent == 1

    @pytest.mark.asyncio
    async def test_empty_change_set(self, source, target, events):
        result = await DeltaSynchronizer(source, target, events).apply([])

        assert result == DeltaResult()
        assert result.ok

    @pytest.mark.asyncio
    async def test_key_missing_from_source_is_skipped(self, source, target, events, seed):
        await seed(source, 3)
        source.remove("Company 001")

        result = await DeltaSynchronizer(source, target, events).apply(["Acme", "Company 001"])

        assert result.applied_keys == ["Acme"]
        assert result.skipped_keys == ["Company 001"]
        assert result.ok
        assert await target.get("Company 001") is None

    @pytest.mark.asyncio
    async def test_failing_key_does_not_stop_others(self, clock, source, events, seed, no_retry):
        target = FlakyTarget("target", clock=clock, broken_keys={"Company 002"})
        await seed(source, 5)
        keys = [r.key for r in await source.find({})]

        result = await DeltaSynchronizer(source, target, events, retry=no_retry).apply(keys)

        assert set(result.applied_keys) == set(keys) - {"Company 002"}
        assert list(result.failed_keys) == ["Company 002"]
        assert "StoreUnavailableError" in result.failed_keys["Company 002"]
        assert not result.ok
        assert events.events_sent == 4

    @pytest.mark.asyncio
    async def test_raise_for_failures_lists_failed_keys(self, clock, source, events, seed, no_retry):
        target = FlakyTarget("target", clock=clock, broken_keys={"Acme"})
        await seed(source, 3)

        result = await DeltaSynchronizer(source, target, events, retry=no_retry).apply(
            ["Acme", "Company 001"]
        )

        with pytest.raises(PartialBatchFailure) as exc_info:
            result.raise_for_failures()
        assert list(exc_info.value.failed_keys) == ["Acme"]
        assert exc_info.value.applied_keys == ["Company 001"]

    @pytest.mark.asyncio
    async def test_transient_source_failure_is_retried(self, source, target, events, seed, fast_retry):
        await seed(source, 3)
        source.fail_next(1)

        result = await DeltaSynchronizer(source, target, events, retry=fast_retry).apply(["Acme"])

        assert result.applied_keys == ["Acme"]

    @pytest.mark.asyncio
    async def test_fan_out_is_bounded(self, clock, source, events, seed):
        target = ConcurrencyProbe("target", clock=clock)
        await seed(source, 20)
        keys = [r.key for r in await source.find({})]

        result = await DeltaSynchronizer(source, target, events, concurrency=3).apply(keys)

        assert len(result.applied_keys) == 20
        assert 1 < target.peak <= 3

    @pytest.mark.asyncio
    async def test_preserves_key_order_in_result(self, source, target, events):
        for key in ["c", "a", "b"]:
            await source.insert(Record(key=key))

        result = await DeltaSynchronizer(source, target, events).apply(["b", "c", "a"])

        assert result.applied_keys == ["b", "c", "a"]

    def test_concurrency_must_be_positive(self, source, target):
        with pytest.raises(ValueError):
            DeltaSynchronizer(source, target, concurrency=0)
