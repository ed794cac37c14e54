"""Block source that reads compressed block files from a local directory tree."""

from __future__ import annotations

import asyncio
import logging
from os import PathLike
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import lz4.frame
import msgpack

from .paths import name_with_largest_number, rmp_path
from .source import BlockNotFoundError, BlockSource

logger = logging.getLogger(__name__)


def _pick_path_with_highest_number(
    directory: Path, is_dir: bool
) -> Optional[Tuple[int, str]]:
    try:
        entries = list(directory.iterdir())
    except OSError:
        return None
    names = [str(entry) for entry in entries if entry.is_dir() == is_dir]
    return name_with_largest_number(names, is_dir)


class LocalBlockSource(BlockSource):
    """Reads blocks stored as ``<millions>/<thousands>/<height>.rmp.lz4`` under a directory."""

    def __init__(self, directory: Union[str, PathLike]) -> None:
        self.directory = Path(directory)

    def __repr__(self) -> str:
        return f"LocalBlockSource({str(self.directory)!r})"

    async def collect_block(self, height: int) -> Dict[str, Any]:
        path = self.directory / rmp_path(height)
        try:
            compressed = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise BlockNotFoundError(
                height, f"failed to read block from {path}: {exc}"
            ) from exc
        blocks = msgpack.unpackb(
            lz4.frame.decompress(compressed), raw=False, strict_map_key=False
        )
        if not isinstance(blocks, list) or not blocks:
            raise BlockNotFoundError(height, f"no block stored in {path}")
        return blocks[0]

    async def find_latest_block_number(self) -> Optional[int]:
        first = _pick_path_with_highest_number(self.directory, True)
        if first is None:
            return None
        second = _pick_path_with_highest_number(Path(first[1]), True)
        if second is None:
            return None
        third = _pick_path_with_highest_number(Path(second[1]), False)
        if third is None:
            return None
        number, path = third
        logger.info("Latest block number: %d with path %s", number, path)
        return number

    def recommended_chunk_size(self) -> int:
        return 1000