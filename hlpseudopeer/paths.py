"""Naming rules for the block files and directories of a block store."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

RMP_SUFFIX = ".rmp.lz4"

_U64_RE = re.compile(r"\+?[0-9]+", re.ASCII)
_U64_LIMIT = 2**64


def _parse_u64(text: str) -> Optional[int]:
    if not _U64_RE.fullmatch(text):
        return None
    number = int(text)
    return number if number < _U64_LIMIT else None


def name_with_largest_number(
    files: Iterable[str], is_dir: bool
) -> Optional[Tuple[int, str]]:
    """Return ``(number, name)`` for the entry whose last path segment is the largest number.

    Directory names are numbers themselves; file names are numbers followed
    by ``.rmp.lz4``. Entries that do not fit are ignored. When several entries
    share the largest number, the last one wins.
    """
    candidates = []
    for raw in files:
        name = raw[:-1] if raw.endswith("/") else raw
        name = name.rsplit("/", 1)[-1]
        if not is_dir:
            if not name.endswith(RMP_SUFFIX):
                continue
            name = name[: -len(RMP_SUFFIX)]
        number = _parse_u64(name)
        if number is not None:
            candidates.append((number, raw))
    if not candidates:
        return None
    return max(reversed(candidates), key=lambda candidate: candidate[0])


def rmp_path(height: int) -> str:
    """Return the relative path of the file holding the block at ``height``."""
    if height < 1:
        raise ValueError(f"block height must be at least 1, got {height}")
    millions = ((height - 1) // 1_000_000) * 1_000_000
    thousands = ((height - 1) // 1_000) * 1_000
    return f"{millions}/{thousands}/{height}{RMP_SUFFIX}"