"""In-memory record store backend (development and testing)."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class MemoryStore:
    """Dict-backed key/value store. Contents are lost on close."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    async def connect(self) -> None:  # noqa: ASYNC910
        """Connect (no-op for in-memory)."""

    async def close(self) -> None:  # noqa: ASYNC910
        """Close and clear the store."""
        self._data.clear()

    async def get(self, key: str) -> bytes | None:  # noqa: ASYNC910
        return self._data.get(key)

    async def put(self, key: str, value: bytes) -> bool:  # noqa: ASYNC910
        """Store a value.

        Returns:
            True if the key already held a value.
        """
        existed = key in self._data
        self._data[key] = value
        return existed

    async def exists(self, key: str) -> bool:  # noqa: ASYNC910
        return key in self._data

    async def scan(self) -> AsyncIterator[tuple[str, bytes]]:
        # Snapshot so callers may write while iterating
        for key, value in list(self._data.items()):
            yield key, value

    async def clear(self) -> None:  # noqa: ASYNC910
        self._data.clear()
