"""The interface every block source implements."""

from __future__ import annotations

import abc
from typing import Any, Dict, Optional

DEFAULT_POLLING_INTERVAL = 0.025
"""Seconds between polls for new blocks, unless a source says otherwise."""


class BlockNotFoundError(LookupError):
    """Raised when a source cannot deliver the block at a height."""

    def __init__(self, height: int, reason: Optional[str] = None) -> None:
        message = f"block {height} not found"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.height = height
        self.reason = reason


class BlockSource(abc.ABC):
    """Something that yields decoded blocks by height."""

    @abc.abstractmethod
    async def collect_block(self, height: int) -> Dict[str, Any]:
        """Return the block at ``height``; raise BlockNotFoundError or OSError if it is unavailable."""

    @abc.abstractmethod
    async def find_latest_block_number(self) -> Optional[int]:
        """Return the highest block number available, or None if it cannot be found."""

    @abc.abstractmethod
    def recommended_chunk_size(self) -> int:
        """Return how many blocks to fetch per batch."""

    def polling_interval(self) -> float:
        """Return the delay in seconds between polls for new blocks."""
        return DEFAULT_POLLING_INTERVAL