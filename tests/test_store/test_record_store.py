"""Tests for the record store over the memory and SQL backends."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from sataddress.config.settings import StoreConfig, StoreEngine
from sataddress.errors.address_errors import AddressError
from sataddress.errors.definitions import ErrRecordNotFound, ErrStoreFailure
from sataddress.store.client import RecordStore
from tests.helpers import make_record

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


@pytest.fixture(params=["memory", "sql"])
async def store(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncIterator[RecordStore]:
    if request.param == "memory":
        config = StoreConfig(engine=StoreEngine.MEMORY)
    else:
        config = StoreConfig(
            engine=StoreEngine.SQL,
            dsn=f"sqlite+aiosqlite:///{tmp_path / 'records.db'}",
        )
    s = RecordStore(config)
    await s.connect()
    yield s
    await s.close()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    async def test_not_connected_by_default(self) -> None:
        s = RecordStore(StoreConfig(engine=StoreEngine.MEMORY))
        assert s.is_connected is False

    async def test_connect_and_close(self) -> None:
        s = RecordStore(StoreConfig(engine=StoreEngine.MEMORY))
        await s.connect()
        assert s.is_connected is True
        await s.close()
        assert s.is_connected is False

    async def test_close_idempotent(self) -> None:
        s = RecordStore(StoreConfig(engine=StoreEngine.MEMORY))
        await s.close()
        assert s.is_connected is False

    async def test_not_connected_raises(self) -> None:
        s = RecordStore(StoreConfig(engine=StoreEngine.MEMORY))
        with pytest.raises(RuntimeError, match="not connected"):
            await s.get("alice", "example.com")


# ---------------------------------------------------------------------------
# Keyed operations
# ---------------------------------------------------------------------------


class TestKeyedOperations:
    async def test_get_missing(self, store: RecordStore) -> None:
        assert await store.get("nobody", "example.com") is None

    async def test_insert_then_get(self, store: RecordStore) -> None:
        record = make_record()
        assert await store.insert("alice", "example.com", record) is False
        loaded = await store.get("alice", "example.com")
        assert loaded == record

    async def test_insert_existing_reports_existed(self, store: RecordStore) -> None:
        await store.insert("alice", "example.com", make_record())
        replacement = make_record(max_sendable=5_000_000)
        assert await store.insert("alice", "example.com", replacement) is True
        loaded = await store.get("alice", "example.com")
        assert loaded is not None
        assert loaded.max_sendable == 5_000_000

    async def test_keys_are_per_domain(self, store: RecordStore) -> None:
        await store.insert("alice", "example.com", make_record())
        assert await store.get("alice", "example.org") is None

    async def test_update_existing(self, store: RecordStore) -> None:
        record = make_record()
        await store.insert("alice", "example.com", record)
        record.stats.edits.inc()
        await store.update(record)
        loaded = await store.get("alice", "example.com")
        assert loaded is not None
        assert loaded.stats.edits.num == 1

    async def test_update_missing_is_not_an_upsert(self, store: RecordStore) -> None:
        with pytest.raises(AddressError) as exc_info:
            await store.update(make_record())
        assert exc_info.value is ErrRecordNotFound
        assert await store.get("alice", "example.com") is None

    async def test_increment(self, store: RecordStore) -> None:
        await store.insert("alice", "example.com", make_record())
        record = await store.increment("alice", "example.com", "calls")
        assert record.stats.calls.num == 1
        loaded = await store.get("alice", "example.com")
        assert loaded is not None
        assert loaded.stats.calls.num == 1
        assert loaded.stats.invoices.num == 0

    async def test_increment_missing(self, store: RecordStore) -> None:
        with pytest.raises(AddressError) as exc_info:
            await store.increment("nobody", "example.com", "calls")
        assert exc_info.value is ErrRecordNotFound

    async def test_concurrent_increments_are_not_lost(self, store: RecordStore) -> None:
        await store.insert("alice", "example.com", make_record())
        await asyncio.gather(
            *(store.increment("alice", "example.com", "invoices") for _ in range(20))
        )
        loaded = await store.get("alice", "example.com")
        assert loaded is not None
        assert loaded.stats.invoices.num == 20

    async def test_replace_keeping_stats_new_key(self, store: RecordStore) -> None:
        record, existed = await store.replace_keeping_stats(make_record())
        assert existed is False
        assert record.stats.edits.num == 0
        assert await store.get("alice", "example.com") is not None

    async def test_replace_keeping_stats_uses_stored_counters(self, store: RecordStore) -> None:
        await store.insert("alice", "example.com", make_record())
        await store.increment("alice", "example.com", "calls")
        await store.increment("alice", "example.com", "invoices")

        edited = make_record(max_sendable=5_000_000)
        record, existed = await store.replace_keeping_stats(edited)
        assert existed is True
        loaded = await store.get("alice", "example.com")
        assert loaded is not None
        assert loaded.max_sendable == 5_000_000
        assert loaded.stats.calls.num == 1
        assert loaded.stats.invoices.num == 1
        assert loaded.stats.edits.num == 1


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


class TestBatch:
    async def test_iter_records(self, store: RecordStore) -> None:
        await store.insert("alice", "example.com", make_record("alice"))
        await store.insert("bob", "example.com", make_record("bob"))
        keys = sorted([r.key async for r in store.iter_records()])
        assert keys == ["alice@example.com", "bob@example.com"]

    async def test_clear(self, store: RecordStore) -> None:
        await store.insert("alice", "example.com", make_record())
        await store.clear()
        assert [r async for r in store.iter_records()] == []


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    async def test_undecodable_value(self, memory_store: RecordStore) -> None:
        await memory_store._backend.put("alice@example.com", b"not json")  # type: ignore[union-attr]
        with pytest.raises(AddressError) as exc_info:
            await memory_store.get("alice", "example.com")
        assert exc_info.value is ErrStoreFailure

    async def test_backend_exception_wrapped(self, memory_store: RecordStore) -> None:
        async def broken(key: str) -> bytes | None:
            raise OSError("disk on fire")

        memory_store._backend.get = broken  # type: ignore[union-attr,method-assign]
        with pytest.raises(AddressError) as exc_info:
            await memory_store.get("alice", "example.com")
        assert exc_info.value is ErrStoreFailure


class TestSQLPersistence:
    async def test_survives_reconnect(self, tmp_path: Path) -> None:
        config = StoreConfig(
            engine=StoreEngine.SQL,
            dsn=f"sqlite+aiosqlite:///{tmp_path / 'persist.db'}",
        )
        first = RecordStore(config)
        await first.connect()
        await first.insert("alice", "example.com", make_record())
        await first.close()

        second = RecordStore(config)
        await second.connect()
        try:
            assert await second.get("alice", "example.com") is not None
        finally:
            await second.close()
