"""Parsing of hourly block files written by a node, one JSON block per line."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

logger = logging.getLogger(__name__)

Block = Dict[str, Any]


@dataclass
class ScanOptions:
    """Which heights a scan keeps and whether it keeps block data at all."""

    start_height: int = 0
    only_load_ranges: bool = False


@dataclass
class ScanResult:
    """Blocks and contiguous height ranges found in one hourly file.

    ``last_line`` is the index of the last kept line, from which a later
    scan of the same file resumes.
    """

    path: Path
    next_expected_height: int
    new_blocks: List[Block] = field(default_factory=list)
    new_block_ranges: List[Tuple[int, int]] = field(default_factory=list)
    last_line: int = 0


def _parse_quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not a block number: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"negative block number: {value}")
        return value
    if isinstance(value, str) and value[:2] in ("0x", "0X"):
        return int(value[2:], 16)
    raise ValueError(f"not a block number: {value!r}")


def block_height(block: Block) -> int:
    """Return the number in the header of a decoded block."""
    try:
        number = block["block"]["Reth115"]["header"]["header"]["number"]
    except (KeyError, TypeError) as exc:
        raise ValueError("block has no header number") from exc
    return _parse_quantity(number)


def line_to_evm_block(line: str) -> Tuple[Block, int]:
    """Decode one ``[timestamp, block]`` line into the block and its height."""
    entry = json.loads(line)
    if (
        not isinstance(entry, list)
        or len(entry) != 2
        or not isinstance(entry[0], str)
        or not isinstance(entry[1], dict)
    ):
        raise ValueError("expected a [timestamp, block] pair")
    block = entry[1]
    return block, block_height(block)


def _read_lines(path: Path) -> List[str]:
    with path.open(encoding="utf-8", newline="") as handle:
        text = handle.read()
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def scan_hour_file(
    path: Union[str, PathLike], last_line: int, options: ScanOptions
) -> ScanResult:
    """Scan ``path`` from line ``last_line`` on, collecting blocks and height ranges."""
    path = Path(path)
    lines = _read_lines(path)
    new_blocks: List[Block] = []
    ranges: List[Tuple[int, int]] = []
    last_height = options.start_height
    current = None

    for index, line in enumerate(lines[last_line:], start=last_line):
        if not line.strip():
            continue
        try:
            block, height = line_to_evm_block(line)
        except ValueError:
            logger.warning("Failed to parse line: %s...", line[:50])
            continue

        if height >= options.start_height:
            last_height = max(last_height, height)
            if not options.only_load_ranges:
                new_blocks.append(block)
            last_line = index

        if current is not None and current[1] + 1 == height:
            current = (current[0], height)
        else:
            if current is not None:
                ranges.append(current)
            current = (height, height)

    if current is not None:
        ranges.append(current)
    return ScanResult(
        path=path,
        next_expected_height=last_height + 1,
        new_blocks=new_blocks,
        new_block_ranges=ranges,
        last_line=last_line,
    )