"""
Lp distance bounds between a query and grid cells.

For query q and cell c in dimension d with edges [lo, hi):
    min contribution = 0 if lo <= q_d <= hi, else distance to the nearer edge
    max contribution = distance to the farther edge
Both are raised to p and tabulated once per query in (D, P) lookup tables.
A cell approximation then costs D table lookups per bound:
    lower = (Σ_d min[d, a_d])^(1/p),  upper = (Σ_d max[d, a_d])^(1/p)
For p = inf the sum and root become a max. For every x mapped to the cell,
lower <= ||q - x||_p <= upper.
"""

from __future__ import annotations
import math
from typing import Optional, Tuple
import numpy as np

from .distance import Distance
from .grid import QuantileGrid


class LPNormBoundEstimator:
    """Bounds for one grid and one Lp exponent; for_query() builds the lookup tables."""

    def __init__(self, grid: QuantileGrid, p: float):
        self.grid = grid
        self.p = float(p)

    def for_query(self, query: np.ndarray) -> "QueryBounds":
        return QueryBounds(self.grid, self.p, query)


class QueryBounds:
    def __init__(self, grid: QuantileGrid, p: float, query: np.ndarray):
        self.p = p
        q = np.asarray(query, dtype=np.float64)[:, None]
        lo, hi = grid.lower_edges, grid.upper_edges

        near = np.maximum(np.maximum(lo - q, q - hi), 0.0)
        far = np.maximum(np.abs(q - lo), np.abs(hi - q))
        if math.isinf(self.p):
            self.min_table, self.max_table = near, far
        else:
            self.min_table, self.max_table = near ** self.p, far ** self.p
        self._dims = np.arange(grid.dimensionality)[None, :]

    def _aggregate(self, contrib: np.ndarray) -> np.ndarray:
        if math.isinf(self.p):
            return contrib.max(axis=-1)
        s = contrib.sum(axis=-1)
        if self.p == 1.0:
            return s
        if self.p == 2.0:
            return np.sqrt(s)
        return s ** (1.0 / self.p)

    def bounds(self, approx: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """(lower, upper) for every row of an (N, D) approximation table."""
        A = np.asarray(approx)
        return (self._aggregate(self.min_table[self._dims, A]),
                self._aggregate(self.max_table[self._dims, A]))

    def lower_bounds(self, approx: np.ndarray) -> np.ndarray:
        return self._aggregate(self.min_table[self._dims, np.asarray(approx)])


def bound_estimator(grid: QuantileGrid, distance: Distance) -> Optional[LPNormBoundEstimator]:
    """Estimator for an Lp distance, or None when the distance has no VA-file bounds."""
    p = distance.as_minkowski()
    if p is None:
        return None
    return LPNormBoundEstimator(grid, p)
