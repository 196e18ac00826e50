"""Redis record store backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sataddress.config.settings import StoreConfig


class RedisStore:
    """Redis-backed key/value store using redis-py's asyncio client.

    Keys are namespaced with ``StoreConfig.redis_prefix``; values are stored
    as raw bytes.
    """

    def __init__(self, config: StoreConfig) -> None:
        self._config = config
        self._prefix = config.redis_prefix
        self._redis = None

    async def connect(self) -> None:
        """Connect to Redis.

        Raises:
            ConnectionError: If Redis connection fails.
        """
        from redis.asyncio import Redis

        self._redis = Redis.from_url(self._config.redis_url, decode_responses=False)

        try:
            await self._redis.ping()
        except Exception as e:
            msg = f"Failed to connect to Redis at {self._config.redis_url}"
            raise ConnectionError(msg) from e

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> bytes | None:
        assert self._redis is not None
        return await self._redis.get(self._prefix + key)

    async def put(self, key: str, value: bytes) -> bool:
        """Store a value atomically.

        Returns:
            True if the key already held a value.
        """
        assert self._redis is not None
        previous = await self._redis.set(self._prefix + key, value, get=True)
        return previous is not None

    async def exists(self, key: str) -> bool:
        assert self._redis is not None
        return bool(await self._redis.exists(self._prefix + key))

    async def scan(self) -> AsyncIterator[tuple[str, bytes]]:
        assert self._redis is not None
        async for raw_key in self._redis.scan_iter(match=f"{self._prefix}*"):
            value = await self._redis.get(raw_key)
            if value is None:
                continue
            yield raw_key.decode("utf-8")[len(self._prefix) :], value

    async def clear(self) -> None:
        assert self._redis is not None
        async for raw_key in self._redis.scan_iter(match=f"{self._prefix}*"):
            await self._redis.delete(raw_key)
