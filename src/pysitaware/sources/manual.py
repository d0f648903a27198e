"""Queue-backed source for manually entered positions."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from pysitaware.models.position import AssetPosition
from pysitaware.sources.base import LocationSource


class ManualLocationSource(LocationSource):
    """Positions pushed by an operator or a test via :meth:`submit`."""

    def __init__(self, name: str = "Manual") -> None:
        super().__init__(name)
        self._queue: asyncio.Queue[AssetPosition] = asyncio.Queue()

    def submit(self, position: AssetPosition) -> None:
        self._queue.put_nowait(position)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def positions(self) -> AsyncIterator[AssetPosition]:
        while True:
            yield await self._queue.get()
