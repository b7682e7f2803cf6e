"""
Bounded heap: keeps the `capacity` best (key, item) pairs seen so far.

"Best" means smallest keys by default, largest with reverse=True. Among equal
keys the earlier offer wins, both for retention and for output order, so
results are stable with respect to encounter order.
"""

from __future__ import annotations
import heapq
import math
from typing import Any, Generic, List, Tuple, TypeVar

T = TypeVar("T")


class BoundedHeap(Generic[T]):
    def __init__(self, capacity: int, reverse: bool = False):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.reverse = reverse
        # heapq is a min-heap; the root is always the worst retained entry
        self._heap: List[Tuple[float, int, Any]] = []
        self._seq = 0

    def __len__(self) -> int:
        return len(self._heap)

    def _rank(self, key: float) -> float:
        return key if self.reverse else -key

    def full(self) -> bool:
        return len(self._heap) >= self.capacity

    def offer(self, key: float, item: T = None) -> bool:
        """Insert if there is room or key beats the current worst. Returns True if kept."""
        entry = (self._rank(key), -self._seq, item)
        self._seq += 1
        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
            return True
        if entry[0] > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def worst(self) -> float:
        """Key of the worst retained entry; the bound to beat once full."""
        if not self._heap:
            raise IndexError("empty heap")
        r = self._heap[0][0]
        return r if self.reverse else -r

    def threshold(self) -> float:
        """worst() once full, else the neutral bound (+inf, or -inf if reverse)."""
        if not self.full():
            return -math.inf if self.reverse else math.inf
        return self.worst()

    def items(self) -> List[Tuple[float, T]]:
        """Retained (key, item) pairs, best first, ties in encounter order."""
        ordered = sorted(self._heap, key=lambda e: (-e[0], -e[1]))
        return [(r if self.reverse else -r, item) for r, _, item in ordered]
