"""Block source wrapper that keeps recently fetched blocks in memory."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Optional

from .source import BlockSource


class CachedBlockSource(BlockSource):
    """Serves blocks from an in-memory LRU cache, asking the wrapped source on a miss."""

    CACHE_LIMIT = 100_000

    def __init__(self, block_source: BlockSource) -> None:
        self._inner = block_source
        self._cache: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()

    def __repr__(self) -> str:
        return f"CachedBlockSource({self._inner!r})"

    def __len__(self) -> int:
        return len(self._cache)

    async def collect_block(self, height: int) -> Dict[str, Any]:
        block = self._cache.get(height)
        if block is not None:
            self._cache.move_to_end(height)
            return block
        block = await self._inner.collect_block(height)
        self._cache[height] = block
        self._cache.move_to_end(height)
        while len(self._cache) > self.CACHE_LIMIT:
            self._cache.popitem(last=False)
        return block

    async def find_latest_block_number(self) -> Optional[int]:
        return await self._inner.find_latest_block_number()

    def recommended_chunk_size(self) -> int:
        return self._inner.recommended_chunk_size()

    def polling_interval(self) -> float:
        return self._inner.polling_interval()