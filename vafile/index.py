"""
Vector approximation file (VA-file)

Reference:
  R. Weber, S. Blott. An approximation based data structure for similarity
  search. Report TR1997b, ETH Zentrum, Zurich, Switzerland.

The index keeps, per object, only its cell index in every dimension of a
quantile grid. Queries run in two phases:
  • filter: bound every approximation against the query with a per-query
    lookup table and drop those that cannot qualify
  • refine: exact distances on the survivors only
Bounds exist for Lp norms only; for other distances the searcher factories
return None and get_knn_searcher / get_range_searcher fall back to a linear
scan.

Build happens once (initialize); afterwards grid and approximations are
read-only, so queries need no locking. Only the statistics are shared.
"""

from __future__ import annotations
import logging
import math
from typing import List, Optional, Tuple, Union
import numpy as np

from .bounds import LPNormBoundEstimator, QueryBounds, bound_estimator
from .config import DEFAULT_PAGE_SIZE, DEFAULT_PARTITIONS, VAFileConfig, check_k, check_radius
from .distance import Distance, EuclideanDistance
from .errors import ConfigurationError, IndexStateError
from .grid import QuantileGrid, build_grid
from .heap import BoundedHeap
from .linear_scan import LinearScanSearcher
from .relation import VectorRelation, as_query
from .stats import IndexStatistics, QueryObserver, approximation_bytes, pages_per_scan

logger = logging.getLogger(__name__)

Neighbor = Tuple[int, float]


class VAFile:
    def __init__(self, relation: VectorRelation, partitions: int,
                 page_size: int = DEFAULT_PAGE_SIZE, observer: Optional[QueryObserver] = None):
        self.config = VAFileConfig(partitions=partitions, page_size=page_size)
        self.relation = relation
        self.stats = IndexStatistics(observer)
        self.grid: Optional[QuantileGrid] = None
        self._approx: Optional[np.ndarray] = None

    @property
    def partitions(self) -> int:
        return self.config.partitions

    @property
    def page_size(self) -> int:
        return self.config.page_size

    @property
    def initialized(self) -> bool:
        return self.grid is not None

    def __len__(self) -> int:
        return 0 if self._approx is None else self._approx.shape[0]

    def __repr__(self) -> str:
        state = f"size={len(self)}" if self.initialized else "unbuilt"
        return f"VAFile(partitions={self.partitions}, page_size={self.page_size}, {state})"

    def initialize(self) -> "VAFile":
        """Build the grid and the approximation table. Allowed exactly once."""
        if self.initialized:
            raise IndexStateError("VA-file is already initialized")
        if len(self.relation) == 0:
            raise ConfigurationError("cannot index an empty dataset")
        grid = build_grid(self.relation, self.partitions)
        approx = grid.approximate_all(self.relation.matrix)
        approx.setflags(write=False)
        self.grid, self._approx = grid, approx
        logger.info("VA-file built: %d vectors, %d dims, %d partitions, %d bytes/approximation",
                    len(self), grid.dimensionality, self.partitions,
                    approximation_bytes(grid.dimensionality, self.partitions))
        return self

    def _require_initialized(self):
        if not self.initialized:
            raise IndexStateError("VA-file must be initialized before it is queried")

    @property
    def approximations(self) -> np.ndarray:
        """(N, D) cell indices in build order, aligned with relation.ids."""
        self._require_initialized()
        return self._approx

    def approximation(self, oid: int) -> np.ndarray:
        self._require_initialized()
        return self._approx[self.relation.row_of(oid)]

    # Observability
    def scanned_pages(self) -> int:
        """Simulated pages read so far: table size in pages times full scans."""
        self._require_initialized()
        pages = pages_per_scan(len(self), self.grid.dimensionality, self.partitions, self.page_size)
        return pages * self.stats.scans

    def log_statistics(self):
        snap = self.stats.snapshot()
        logger.info("VA-file statistics: scannedpages=%d queries=%d mean_refinements=%.2f",
                    self.scanned_pages(), snap["queries"], snap["mean_refinements"])

    # Searchers
    def knn_searcher(self, distance: Distance) -> Optional["VAFileKNNQuery"]:
        """KNN searcher for an Lp distance, None if the distance is unsupported."""
        self._require_initialized()
        estimator = bound_estimator(self.grid, distance)
        return None if estimator is None else VAFileKNNQuery(self, distance, estimator)

    def range_searcher(self, distance: Distance) -> Optional["VAFileRangeQuery"]:
        """Range searcher for an Lp distance, None if the distance is unsupported."""
        self._require_initialized()
        estimator = bound_estimator(self.grid, distance)
        return None if estimator is None else VAFileRangeQuery(self, distance, estimator)

    def knn_search(self, query, k: int, distance: Optional[Distance] = None) -> List[Neighbor]:
        return get_knn_searcher(self, distance or EuclideanDistance()).knn(query, k)

    def range_search(self, query, eps: float, distance: Optional[Distance] = None) -> List[Neighbor]:
        return get_range_searcher(self, distance or EuclideanDistance()).range(query, eps)


class _RefiningQuery:
    def __init__(self, index: VAFile, distance: Distance, estimator: LPNormBoundEstimator):
        self.index = index
        self.distance = distance
        self.estimator = estimator

    def _prepare(self, query) -> Tuple[np.ndarray, QueryBounds]:
        grid = self.index.grid
        q = as_query(query, grid.dimensionality)
        grid.warn_outside(q)
        return q, self.estimator.for_query(q)

    def refine(self, q: np.ndarray, row: int) -> float:
        return self.distance.distance(q, self.index.relation.matrix[row])


class VAFileRangeQuery(_RefiningQuery):
    def range(self, query, eps: float) -> List[Neighbor]:
        """All (id, distance) with distance <= eps, unordered."""
        eps = check_radius(eps)
        q, vadist = self._prepare(query)
        lower = vadist.lower_bounds(self.index._approx)
        rows = np.flatnonzero(lower <= eps)

        X, ids = self.index.relation.matrix, self.index.relation.ids
        dists = self.distance.distances(q, X[rows]) if rows.size else np.empty(0)
        hit = dists <= eps
        result = list(zip(ids[rows[hit]].tolist(), dists[hit].tolist()))
        self.index.stats.record("range", int(rows.size), int(rows.size), len(result))
        return result


class VAFileKNNQuery(_RefiningQuery):
    def knn(self, query, k: int) -> List[Neighbor]:
        """k nearest (id, distance) ascending by distance; ties in refinement order."""
        k = check_k(k, len(self.index.relation))
        q, vadist = self._prepare(query)
        lower, upper = vadist.bounds(self.index._approx)
        lower, upper = lower.tolist(), upper.tolist()

        # k-th smallest upper bound seen so far
        min_max_heap: BoundedHeap[None] = BoundedHeap(k)
        min_max_dist = math.inf
        candidates: List[int] = []
        for row, lb in enumerate(lower):
            if lb > min_max_dist:
                continue
            candidates.append(row)
            min_max_heap.offer(upper[row])
            min_max_dist = min_max_heap.threshold()
        candidates.sort(key=lower.__getitem__)

        ids = self.index.relation.ids
        result: BoundedHeap[int] = BoundedHeap(k)
        refined = 0
        for row in candidates:
            if result.full() and lower[row] > result.worst():
                break
            result.offer(self.refine(q, row), int(ids[row]))
            refined += 1
        self.index.stats.record("knn", len(candidates), refined, len(result))
        return [(oid, dist) for dist, oid in result.items()]


def get_knn_searcher(index: VAFile, distance: Distance) -> Union[VAFileKNNQuery, LinearScanSearcher]:
    searcher = index.knn_searcher(distance)
    if searcher is None:
        logger.info("VA-file has no bounds for %r; using linear scan", distance)
        return LinearScanSearcher(index.relation, distance)
    return searcher


def get_range_searcher(index: VAFile, distance: Distance) -> Union[VAFileRangeQuery, LinearScanSearcher]:
    searcher = index.range_searcher(distance)
    if searcher is None:
        logger.info("VA-file has no bounds for %r; using linear scan", distance)
        return LinearScanSearcher(index.relation, distance)
    return searcher


class VAFileFactory:
    """Holds construction parameters; instantiate() builds one VA-file per relation."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, partitions: int = DEFAULT_PARTITIONS,
                 observer: Optional[QueryObserver] = None):
        self.config = VAFileConfig(partitions=partitions, page_size=page_size)
        self.observer = observer

    def instantiate(self, relation: VectorRelation) -> VAFile:
        return VAFile(relation, self.config.partitions, self.config.page_size, self.observer)
