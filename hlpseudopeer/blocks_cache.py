"""In-memory store of blocks read from hourly files and of which file holds which heights."""

from __future__ import annotations

import logging
from bisect import bisect_right
from collections import OrderedDict
from os import PathLike
from pathlib import Path
from typing import Dict, Generic, List, Optional, Tuple, TypeVar, Union

from .scan import Block, ScanResult, block_height

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _RangeMap(Generic[T]):
    """Disjoint inclusive integer ranges mapped to values; equal touching ranges merge."""

    def __init__(self) -> None:
        self._ranges: List[Tuple[int, int, T]] = []

    def __len__(self) -> int:
        return len(self._ranges)

    def insert(self, start: int, end: int, value: T) -> None:
        if end < start:
            raise ValueError(f"empty range {start}..={end}")
        kept: List[Tuple[int, int, T]] = []
        for low, high, old in self._ranges:
            if high < start or low > end:
                kept.append((low, high, old))
                continue
            if low < start:
                kept.append((low, start - 1, old))
            if high > end:
                kept.append((end + 1, high, old))
        kept.append((start, end, value))
        kept.sort(key=lambda entry: entry[0])

        merged: List[Tuple[int, int, T]] = []
        for low, high, current in kept:
            if merged and merged[-1][2] == current and merged[-1][1] + 1 >= low:
                prev_low, prev_high, _ = merged[-1]
                merged[-1] = (prev_low, max(prev_high, high), current)
            else:
                merged.append((low, high, current))
        self._ranges = merged

    def get(self, key: int) -> Optional[T]:
        index = bisect_right(self._ranges, key, key=lambda entry: entry[0]) - 1
        if index < 0:
            return None
        low, high, value = self._ranges[index]
        return value if low <= key <= high else None

    def first(self) -> Tuple[int, int, T]:
        return self._ranges[0]

    def last(self) -> Tuple[int, int, T]:
        return self._ranges[-1]


class LocalBlocksCache:
    """Keeps up to ``cache_size`` loaded blocks and the file that holds each height range."""

    def __init__(self, cache_size: int) -> None:
        self._cache_size = cache_size
        self._blocks: "OrderedDict[int, Block]" = OrderedDict()
        self._ranges: _RangeMap[Path] = _RangeMap()

    def load_scan_result(self, scan_result: ScanResult) -> None:
        for block in scan_result.new_blocks:
            self._insert_block(block_height(block), block)
        for start, end in scan_result.new_block_ranges:
            self._ranges.insert(start, end, scan_result.path)

    def _insert_block(self, height: int, block: Block) -> None:
        self._blocks[height] = block
        self._blocks.move_to_end(height)
        while len(self._blocks) > self._cache_size:
            self._blocks.popitem(last=False)

    def get_block(self, height: int) -> Optional[Block]:
        """Take the block at ``height`` out of the cache, if it is there."""
        return self._blocks.pop(height, None)

    def get_path_for_height(self, height: int) -> Optional[Path]:
        return self._ranges.get(height)

    def log_range_summary(self, root: Union[str, PathLike]) -> None:
        if not len(self._ranges):
            logger.warning("No ranges found in %s", root)
            return
        first, last = self._ranges.first(), self._ranges.last()
        logger.info(
            "Populated %d ranges (min: %d, max: %d)", len(self._ranges), first[0], last[1]
        )


BlocksByHeight = Dict[int, Block]