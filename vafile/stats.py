"""
Query statistics and the simulated page cost model.

Nothing here affects query results. Each index owns one IndexStatistics;
counters are guarded by a lock so concurrent queries never lose updates.

Page cost model:
  • an approximation record is ceil(D * log2(P)) bits of cells, rounded
    down to whole bytes, plus a 4-byte object id
  • records per page = page_size // record bytes (at least one)
  • a full scan reads ceil(N / records per page) pages
"""

from __future__ import annotations
import logging
import math
import threading
from typing import Callable, Dict, Optional

from .config import ID_BYTES

logger = logging.getLogger(__name__)

# callback(event, payload); event is "knn" or "range"
QueryObserver = Callable[[str, Dict[str, float]], None]


def approximation_bytes(dimensionality: int, partitions: int) -> int:
    bits = math.ceil(dimensionality * math.log2(partitions))
    return bits // 8 + ID_BYTES


def pages_per_scan(size: int, dimensionality: int, partitions: int, page_size: int) -> int:
    per_page = max(1, page_size // approximation_bytes(dimensionality, partitions))
    return math.ceil(size / per_page)


class IndexStatistics:
    def __init__(self, observer: Optional[QueryObserver] = None):
        self.observer = observer
        self._lock = threading.Lock()
        self.scans = 0
        self.queries = 0
        self.refinements = 0
        self.candidates = 0

    def record(self, event: str, candidates: int, refinements: int, results: int):
        with self._lock:
            self.scans += 1
            self.queries += 1
            self.candidates += candidates
            self.refinements += refinements
        logger.debug("%s query: candidates=%d refined=%d results=%d", event, candidates, refinements, results)
        if self.observer is not None:
            self.observer(event, {"candidates": candidates, "refinements": refinements, "results": results})

    @property
    def mean_refinements(self) -> float:
        """Exact distance computations per query so far (0.0 before any query)."""
        with self._lock:
            return self.refinements / self.queries if self.queries else 0.0

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            q = self.queries
            return {
                "scans": self.scans,
                "queries": q,
                "candidates": self.candidates,
                "refinements": self.refinements,
                "mean_refinements": self.refinements / q if q else 0.0,
            }

    def reset(self):
        with self._lock:
            self.scans = self.queries = self.refinements = self.candidates = 0
