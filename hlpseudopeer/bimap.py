"""A two-way mapping whose left keys are bounded by least-recent use."""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V", bound=Hashable)


class LruBiMap(Generic[K, V]):
    """Maps keys to values and values back to keys, evicting the oldest keys past ``limit``."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._left_to_right: Dict[K, V] = {}
        self._right_to_left: Dict[V, K] = {}
        self._keys: "OrderedDict[K, None]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._left_to_right)

    def insert(self, key: K, value: V) -> None:
        """Store ``key <-> value``; a new key may evict the least recently inserted one."""
        if key in self._keys:
            self._keys.move_to_end(key)
        else:
            if self._keys and len(self._keys) >= self._limit:
                evicted, _ = self._keys.popitem(last=False)
                self._evict(evicted)
            self._keys[key] = None
        self._left_to_right[key] = value
        self._right_to_left[value] = key

    def get_by_left(self, key: K) -> Optional[V]:
        return self._left_to_right.get(key)

    def get_by_right(self, value: V) -> Optional[K]:
        return self._right_to_left.get(value)

    def _evict(self, key: K) -> None:
        value = self._left_to_right.pop(key, None)
        if value is not None:
            self._right_to_left.pop(value, None)