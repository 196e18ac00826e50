"""Record store — keyed get/insert/update over serialized address records.

The store keeps one opaque value per ``name@domain`` key. Records are
serialized by :class:`AddressRecord` and written as a single value, so a
write is never partial. ``update`` refuses to create missing keys.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import TYPE_CHECKING, Protocol, TypeVar

from pydantic import ValidationError

from sataddress.errors.address_errors import AddressError
from sataddress.errors.definitions import ErrRecordNotFound, ErrStoreFailure
from sataddress.models.record import AddressRecord, CounterName, record_key

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable

    from sataddress.config.settings import StoreConfig

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class RecordStore:
    """Store adapter that delegates raw byte storage to a backend."""

    def __init__(self, config: StoreConfig) -> None:
        """Initialize the store with configuration.

        Args:
            config: Store configuration with engine type and connection params.
        """
        self._config = config
        self._backend: StoreBackend | None = None
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    async def connect(self) -> None:
        """Connect to the configured backend.

        Raises:
            ValueError: If the store engine type is invalid.
        """
        from sataddress.store.memory import MemoryStore
        from sataddress.store.redis import RedisStore
        from sataddress.store.sql import SQLStore

        engine = self._config.engine.lower()

        if engine == "memory":
            self._backend = MemoryStore()
        elif engine == "sql":
            self._backend = SQLStore(self._config)
        elif engine == "redis":
            self._backend = RedisStore(self._config)
        else:
            msg = f"Unsupported store engine: {engine}"
            raise ValueError(msg)

        await self._backend.connect()
        logger.info("Record store connected (engine=%s)", engine)

    async def close(self) -> None:
        """Close the backend connection (idempotent)."""
        if self._backend is not None:
            await self._backend.close()
            self._backend = None

    @property
    def is_connected(self) -> bool:
        return self._backend is not None

    # ------------------------------------------------------------------
    # Keyed operations
    # ------------------------------------------------------------------

    async def get(self, name: str, domain: str) -> AddressRecord | None:
        """Load the record for ``name@domain``.

        Returns:
            The record, or None if no record exists for the key.

        Raises:
            AddressError: ``ErrStoreFailure`` on backend or decoding errors.
        """
        backend = self._ensure_connected()
        key = record_key(name, domain)
        raw = await self._call(backend.get(key), key)
        if raw is None:
            return None
        return self._decode(key, raw)

    async def insert(self, name: str, domain: str, record: AddressRecord) -> bool:
        """Write a record under ``name@domain``, replacing any existing value.

        Returns:
            True if a record already existed for the key.
        """
        backend = self._ensure_connected()
        key = record_key(name, domain)
        async with self._lock(key):
            return await self._call(backend.put(key, record.to_bytes()), key)

    async def update(self, record: AddressRecord) -> None:
        """Overwrite an existing record.

        Raises:
            AddressError: ``ErrRecordNotFound`` if no record exists for the key.
        """
        backend = self._ensure_connected()
        key = record.key
        async with self._lock(key):
            await self._replace(backend, key, record)

    async def increment(self, name: str, domain: str, counter: CounterName) -> AddressRecord:
        """Bump one usage counter of a stored record and persist it.

        The read-modify-write runs under a per-key lock, so concurrent
        increments for the same address within this process are not lost.

        Returns:
            The record as written.
        """
        backend = self._ensure_connected()
        key = record_key(name, domain)
        async with self._lock(key):
            raw = await self._call(backend.get(key), key)
            if raw is None:
                raise ErrRecordNotFound
            record = self._decode(key, raw)
            getattr(record.stats, counter).inc()
            await self._replace(backend, key, record)
        return record

    async def replace_keeping_stats(self, record: AddressRecord) -> tuple[AddressRecord, bool]:
        """Write an edited record, carrying over the stored usage counters.

        The stored value is re-read under the per-key lock, so increments
        made since the caller loaded the record are kept. ``edits`` is bumped
        when a record already existed.

        Returns:
            The record as written and whether one already existed.
        """
        backend = self._ensure_connected()
        key = record.key
        async with self._lock(key):
            raw = await self._call(backend.get(key), key)
            if raw is not None:
                stats = self._decode(key, raw).stats
                stats.edits.inc()
                record = record.model_copy(update={"stats": stats})
            existed = await self._call(backend.put(key, record.to_bytes()), key)
        return record, existed

    async def iter_records(self) -> AsyncIterator[AddressRecord]:
        """Yield every stored record (batch jobs only, O(n))."""
        backend = self._ensure_connected()
        async for key, raw in backend.scan():
            yield self._decode(key, raw)

    async def clear(self) -> None:
        """Remove every record (fixtures and testing only)."""
        backend = self._ensure_connected()
        await backend.clear()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _replace(self, backend: StoreBackend, key: str, record: AddressRecord) -> None:
        if not await self._call(backend.exists(key), key):
            logger.warning("Update refused, key does not exist: %s", key)
            raise ErrRecordNotFound
        await self._call(backend.put(key, record.to_bytes()), key)

    def _lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @staticmethod
    async def _call(awaitable: Awaitable[_T], key: str) -> _T:
        try:
            return await awaitable
        except AddressError:
            raise
        except Exception as exc:
            logger.exception("Record store failure for %s", key)
            raise ErrStoreFailure from exc

    @staticmethod
    def _decode(key: str, raw: bytes) -> AddressRecord:
        try:
            return AddressRecord.from_bytes(raw)
        except ValidationError as exc:
            logger.error("Undecodable record stored under %s: %s", key, exc)
            raise ErrStoreFailure from exc

    def _ensure_connected(self) -> StoreBackend:
        if self._backend is None:
            msg = "Record store not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._backend


class StoreBackend(Protocol):
    """Protocol for raw key/value backends."""

    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def get(self, key: str) -> bytes | None: ...
    async def put(self, key: str, value: bytes) -> bool: ...
    async def exists(self, key: str) -> bool: ...
    def scan(self) -> AsyncIterator[tuple[str, bytes]]: ...
    async def clear(self) -> None: ...
