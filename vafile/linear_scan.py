"""
Exhaustive fallback searcher: computes the exact distance to every object,
in storage order, with no pruning. Works for any distance.
"""

from __future__ import annotations
from typing import Iterator, List, Tuple

from .config import check_k, check_radius
from .distance import Distance
from .heap import BoundedHeap
from .relation import VectorRelation, as_query


class LinearScanSearcher:
    def __init__(self, relation: VectorRelation, distance: Distance):
        self.relation = relation
        self.distance = distance

    def scan(self, query) -> Iterator[Tuple[int, float]]:
        """(id, distance) for every object, unordered."""
        q = as_query(query, self.relation.dimensionality)
        dists = self.distance.distances(q, self.relation.matrix)
        for oid, dist in zip(self.relation.ids.tolist(), dists.tolist()):
            yield oid, dist

    def range(self, query, eps: float) -> List[Tuple[int, float]]:
        eps = check_radius(eps)
        return [(oid, dist) for oid, dist in self.scan(query) if dist <= eps]

    def knn(self, query, k: int) -> List[Tuple[int, float]]:
        heap: BoundedHeap[int] = BoundedHeap(check_k(k, len(self.relation)))
        for oid, dist in self.scan(query):
            heap.offer(dist, oid)
        return [(oid, dist) for dist, oid in heap.items()]


def brute_force_knn(relation: VectorRelation, distance: Distance, query, k: int) -> List[Tuple[int, float]]:
    return LinearScanSearcher(relation, distance).knn(query, k)


def brute_force_range(relation: VectorRelation, distance: Distance, query, eps: float) -> List[Tuple[int, float]]:
    return LinearScanSearcher(relation, distance).range(query, eps)
