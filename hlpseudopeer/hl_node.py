"""Block source that follows the hourly files of a local node and falls back to another source."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from os import PathLike
from pathlib import Path
from typing import Optional, Tuple, Union

from .blocks_cache import LocalBlocksCache
from .file_ops import (
    HOURLY_SUBDIR,
    all_hourly_files,
    find_latest_hourly_file,
    read_last_block_from_file,
)
from .scan import Block, ScanOptions, scan_hour_file
from .source import BlockNotFoundError, BlockSource
from .timeutils import date_from_datetime, datetime_from_path

logger = logging.getLogger(__name__)

CACHE_SIZE = 8000
ONE_HOUR = timedelta(hours=1)
TAIL_INTERVAL = 0.025


@dataclass
class HlNodeBlockSourceArgs:
    """Where the node writes its hourly files and how long to wait for it before falling back.

    ``fallback_threshold`` is in seconds.
    """

    root: Path
    fallback_threshold: float

    def __post_init__(self) -> None:
        self.root = Path(self.root)


def backfill_local_blocks(
    root: Union[str, PathLike], cache: LocalBlocksCache, cutoff_height: int
) -> None:
    """Record which hourly file holds each height from ``cutoff_height`` on, without loading blocks."""
    for hourly_file in all_hourly_files(root) or []:
        last = read_last_block_from_file(hourly_file)
        if last is not None:
            if last[1] < cutoff_height:
                continue
        else:
            logger.warning("Failed to parse last line of file: %s", hourly_file)
        result = scan_hour_file(
            hourly_file,
            0,
            ScanOptions(start_height=cutoff_height, only_load_ranges=True),
        )
        result.new_blocks.clear()
        cache.load_scan_result(result)
    cache.log_range_summary(root)


class HlNodeBlockSource(BlockSource):
    """Serves blocks the local node has written, using ``fallback`` when the node lags behind."""

    def __init__(self, fallback: BlockSource, args: HlNodeBlockSourceArgs) -> None:
        self.fallback = fallback
        self.args = args
        self.local_blocks_cache = LocalBlocksCache(CACHE_SIZE)
        self._last_local_fetch: Optional[Tuple[int, float]] = None
        self._ingest_task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"HlNodeBlockSource(root={str(self.args.root)!r}, fallback={self.fallback!r})"

    async def __aenter__(self) -> "HlNodeBlockSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def start(self, next_block_number: int) -> None:
        """Index existing hourly files and begin following new ones from ``next_block_number``."""
        if self._ingest_task is not None:
            raise RuntimeError("block source already started")
        backfill_local_blocks(self.args.root, self.local_blocks_cache, next_block_number)
        self._ingest_task = asyncio.create_task(self._ingest_loop(next_block_number))

    async def close(self) -> None:
        """Stop following the hourly files."""
        task, self._ingest_task = self._ingest_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def collect_block(self, height: int) -> Block:
        now = time.monotonic()
        block = self._try_collect_local_block(height)
        if block is not None:
            self._update_last_fetch(height, now)
            return block

        if self._last_local_fetch is not None:
            last_height, last_time = self._last_local_fetch
            more_recent = last_height < height
            too_soon = now - last_time < self.args.fallback_threshold
            if more_recent and too_soon:
                raise BlockNotFoundError(
                    height,
                    "not found locally; limiting polling rate before fallback "
                    "so that the node has a chance to catch up",
                )

        block = await self.fallback.collect_block(height)
        self._update_last_fetch(height, now)
        return block

    async def find_latest_block_number(self) -> Optional[int]:
        latest_file = find_latest_hourly_file(self.args.root)
        if latest_file is None:
            logger.warning(
                "No EVM blocks from the node found at %s; using the fallback source",
                self.args.root,
            )
            return await self.fallback.find_latest_block_number()
        last = read_last_block_from_file(latest_file)
        if last is None:
            logger.warning(
                "Failed to parse the hourly file at %s; using the fallback source",
                latest_file,
            )
            return await self.fallback.find_latest_block_number()
        height = last[1]
        logger.info("Latest block number: %d with path %s", height, latest_file)
        return height

    def recommended_chunk_size(self) -> int:
        return self.fallback.recommended_chunk_size()

    def _update_last_fetch(self, height: int, now: float) -> None:
        if self._last_local_fetch is None or self._last_local_fetch[0] < height:
            self._last_local_fetch = (height, now)

    def _try_collect_local_block(self, height: int) -> Optional[Block]:
        cache = self.local_blocks_cache
        block = cache.get_block(height)
        if block is not None:
            return block
        path = cache.get_path_for_height(height)
        if path is None:
            return None
        logger.info("Loading block data from %s", path)
        result = scan_hour_file(path, 0, ScanOptions(start_height=0, only_load_ranges=False))
        cache.load_scan_result(result)
        return cache.get_block(height)

    def _hour_file(self, day: str, hour: int) -> Path:
        return self.args.root / HOURLY_SUBDIR / day / str(hour)

    async def _ingest_loop(self, current_head: int) -> None:
        root = self.args.root
        next_height = current_head
        while True:
            latest = find_latest_hourly_file(root)
            if latest is not None:
                dt: datetime = datetime_from_path(latest)
                break
            await asyncio.sleep(TAIL_INTERVAL)

        hour, day, last_line = dt.hour, date_from_datetime(dt), 0
        logger.info("Starting local ingest loop from height: %d", current_head)
        while True:
            hour_file = self._hour_file(day, hour)
            if hour_file.exists():
                try:
                    result = scan_hour_file(
                        hour_file,
                        last_line,
                        ScanOptions(start_height=next_height, only_load_ranges=False),
                    )
                except OSError as exc:
                    logger.warning("Failed to read %s: %s", hour_file, exc)
                else:
                    last_line = result.last_line
                    next_height = result.next_expected_height
                    self.local_blocks_cache.load_scan_result(result)
            if dt + ONE_HOUR < datetime.now(timezone.utc):
                dt += ONE_HOUR
                hour, day, last_line = dt.hour, date_from_datetime(dt), 0
                logger.info("Moving to new file: %s", self._hour_file(day, hour))
                continue
            await asyncio.sleep(TAIL_INTERVAL)