"""
Append-only registry of pool ids, in creation order.
"""

from __future__ import annotations

import threading
from typing import Iterator, List, Tuple


class PoolRegistry:
    """
    Ordered, append-only list of pool ids.

    Readers get an immutable tuple snapshot without taking the lock; only
    `append` serializes.
    """

    def __init__(self) -> None:
        self._ids: Tuple[str, ...] = ()
        self._lock = threading.Lock()

    def append(self, pool_id: str) -> int:
        """Register a pool id; returns its 0-based position."""
        with self._lock:
            if pool_id in self._ids:
                raise ValueError(f"pool already registered: {pool_id}")
            self._ids = self._ids + (pool_id,)
            return len(self._ids) - 1

    def ids(self) -> List[str]:
        return list(self._ids)

    def __contains__(self, pool_id: object) -> bool:
        return pool_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"PoolRegistry({len(self._ids)} pools)"
