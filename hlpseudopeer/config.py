"""Description of where blocks come from, and construction of the matching block sources."""

from __future__ import annotations

from dataclasses import dataclass, replace
from os import PathLike
from pathlib import Path
from typing import Optional, Union

from .hl_node import HlNodeBlockSource, HlNodeBlockSourceArgs
from .source import BlockSource


@dataclass(frozen=True)
class S3DefaultSource:
    """The chain's official S3 bucket, polled every ``polling_interval`` seconds."""

    polling_interval: float


@dataclass(frozen=True)
class S3Source:
    """A named S3 bucket, polled every ``polling_interval`` seconds."""

    bucket: str
    polling_interval: float


@dataclass(frozen=True)
class LocalSource:
    """A local directory tree of compressed block files."""

    path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))


SourceType = Union[S3DefaultSource, S3Source, LocalSource]


@dataclass(frozen=True)
class BlockSourceConfig:
    """The primary block source, optionally fronted by a local node's hourly files."""

    source_type: SourceType
    block_source_from_node: Optional[HlNodeBlockSourceArgs] = None

    @classmethod
    def s3_default(cls, polling_interval: float) -> "BlockSourceConfig":
        return cls(S3DefaultSource(polling_interval))

    @classmethod
    def s3(cls, bucket: str, polling_interval: float) -> "BlockSourceConfig":
        return cls(S3Source(bucket, polling_interval))

    @classmethod
    def local(cls, path: Union[str, PathLike]) -> "BlockSourceConfig":
        return cls(LocalSource(Path(path)))

    @classmethod
    def local_default(cls) -> "BlockSourceConfig":
        """Use ``~/hl/data/evm_blocks_and_receipts``; raises RuntimeError without a home directory."""
        return cls.local(Path.home() / "hl" / "data" / "evm_blocks_and_receipts")

    def with_block_source_from_node(
        self, block_source_from_node: HlNodeBlockSourceArgs
    ) -> "BlockSourceConfig":
        """Return a copy that reads from the node's hourly files before the primary source."""
        return replace(self, block_source_from_node=block_source_from_node)

    async def create_block_source_from_node(
        self, next_block_number: int, fallback_block_source: BlockSource
    ) -> BlockSource:
        """Wrap ``fallback_block_source`` in a started node source, if one is configured."""
        if self.block_source_from_node is None:
            return fallback_block_source
        source = HlNodeBlockSource(fallback_block_source, self.block_source_from_node)
        await source.start(next_block_number)
        return source