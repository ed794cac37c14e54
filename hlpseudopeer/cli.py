"""Command-line options that select the block source."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .config import BlockSourceConfig
from .hl_node import HlNodeBlockSourceArgs

S3_SCHEME = "s3://"
DEFAULT_S3_POLLING_INTERVAL_MS = 25
DEFAULT_LOCAL_FALLBACK_THRESHOLD_MS = 5000


@dataclass
class BlockSourceArgs:
    """Block source options as given on the command line; intervals are in milliseconds."""

    block_source: Optional[str] = None
    local_ingest_dir: Optional[str] = None
    s3: bool = False
    local: bool = False
    s3_polling_interval: int = DEFAULT_S3_POLLING_INTERVAL_MS
    local_fallback_threshold: int = DEFAULT_LOCAL_FALLBACK_THRESHOLD_MS

    def parse(self) -> BlockSourceConfig:
        """Turn the options into a configuration; raise ValueError if no source is given."""
        config = self._base_config()
        if self.local_ingest_dir is None:
            return config
        return config.with_block_source_from_node(
            HlNodeBlockSourceArgs(
                root=Path(self.local_ingest_dir),
                fallback_threshold=self.local_fallback_threshold / 1000,
            )
        )

    def _base_config(self) -> BlockSourceConfig:
        polling_interval = self.s3_polling_interval / 1000
        if self.s3:
            return BlockSourceConfig.s3_default(polling_interval)
        if self.local:
            return BlockSourceConfig.local_default()
        if self.block_source is None:
            raise ValueError(
                "You need to specify a block source e.g., --s3 or --block-source=/path/to/blocks"
            )
        if self.block_source.startswith(S3_SCHEME):
            return BlockSourceConfig.s3(self.block_source[len(S3_SCHEME):], polling_interval)
        return BlockSourceConfig.local(self.block_source)


def _milliseconds(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of milliseconds: {text!r}") from None
    if value < 0 or value >= 2**64:
        raise argparse.ArgumentTypeError(f"invalid number of milliseconds: {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Return a parser for the block source options."""
    parser = argparse.ArgumentParser(description="Select where blocks are read from.")
    parser.add_argument(
        "--block-source",
        "--ingest-dir",
        dest="block_source",
        help="Block source, e.g. s3://bucket-name or /path/to/evm-blocks",
    )
    parser.add_argument(
        "--local-ingest-dir",
        dest="local_ingest_dir",
        help="Directory where the local node writes its hourly block files",
    )
    parser.add_argument(
        "--s3", action="store_true", help="Shorthand for the chain's official S3 bucket"
    )
    parser.add_argument(
        "--local",
        action="store_true",
        help="Shorthand for --block-source=~/hl/data/evm_blocks_and_receipts",
    )
    parser.add_argument(
        "--s3.polling-interval",
        dest="s3_polling_interval",
        type=_milliseconds,
        default=DEFAULT_S3_POLLING_INTERVAL_MS,
        help="Interval for polling new blocks in S3, in milliseconds",
    )
    parser.add_argument(
        "--local.fallback-threshold",
        dest="local_fallback_threshold",
        type=_milliseconds,
        default=DEFAULT_LOCAL_FALLBACK_THRESHOLD_MS,
        help="Longest wait for the local node before using other sources, in milliseconds",
    )
    return parser


def parse_block_source_args(argv: Optional[Sequence[str]] = None) -> BlockSourceArgs:
    """Parse ``argv`` (default: the process arguments) into BlockSourceArgs."""
    namespace = build_parser().parse_args(argv)
    return BlockSourceArgs(**vars(namespace))