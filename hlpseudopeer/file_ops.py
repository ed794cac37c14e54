"""Locating hourly block files and reading their newest block."""

from __future__ import annotations

import os
from os import PathLike
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from .scan import Block, line_to_evm_block
from .timeutils import datetime_from_path

HOURLY_SUBDIR = "hourly"

_CHUNK_SIZE = 50000


def all_hourly_files(root: Union[str, PathLike]) -> Optional[List[Path]]:
    """List ``root/hourly/<day>/<hour>`` files in time order, or None if there is no hourly dir."""
    hourly = Path(root) / HOURLY_SUBDIR
    try:
        day_dirs = list(hourly.iterdir())
    except OSError:
        return None
    found = []
    for day_dir in day_dirs:
        try:
            entries = list(day_dir.iterdir())
        except OSError:
            continue
        for entry in entries:
            dt = datetime_from_path(entry)
            if dt is not None:
                found.append((dt, entry))
    found.sort()
    return [path for _, path in found]


def find_latest_hourly_file(root: Union[str, PathLike]) -> Optional[Path]:
    files = all_hourly_files(root)
    return files[-1] if files else None


def read_last_block_from_file(path: Union[str, PathLike]) -> Optional[Tuple[Block, int]]:
    """Return the last parsable block of the file with its height, or None."""
    try:
        handle = open(path, "rb")
    except OSError:
        return None
    with handle:
        return _read_last_complete_line(handle)


def _try_parse(raw: bytes) -> Optional[Tuple[Block, int]]:
    try:
        return line_to_evm_block(raw.decode("utf-8"))
    except ValueError:
        return None


def _read_last_complete_line(handle: BinaryIO) -> Optional[Tuple[Block, int]]:
    pos = handle.seek(0, os.SEEK_END)
    last_line = b""
    while pos > 0:
        read_size = min(pos, _CHUNK_SIZE)
        handle.seek(pos - read_size)
        chunk = handle.read(read_size)
        if len(chunk) != read_size:
            raise OSError("unexpected end of file while reading backwards")
        last_line = chunk + last_line
        if last_line.endswith(b"\n"):
            last_line = last_line[:-1]

        index = last_line.rfind(b"\n")
        if index != -1:
            parsed = _try_parse(last_line[index + 1 :])
            if parsed is not None:
                return parsed
            last_line = last_line[:index]
        pos -= read_size
    return _try_parse(last_line)