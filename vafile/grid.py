"""
Quantile grid and vector approximations.

Per dimension d the grid holds P + 1 non-decreasing boundaries:
    boundary[b] = sorted(values_d)[floor(b * n / P)]   for b < P
    boundary[P] = max(values_d) + GRID_EPSILON
Cell c covers [boundary[c], boundary[c+1]). An approximation is the cell
index per dimension, stored in the smallest unsigned dtype that holds P - 1.
"""

from __future__ import annotations
import logging
import numpy as np

from .config import GRID_EPSILON, check_partitions
from .errors import ConfigurationError
from .relation import VectorRelation

logger = logging.getLogger(__name__)


class QuantileGrid:
    def __init__(self, boundaries: np.ndarray):
        B = np.array(boundaries, dtype=np.float64, copy=True)
        if B.ndim != 2 or B.shape[1] < 3:
            raise ConfigurationError(f"grid needs shape (D, P+1) with P >= 2, got {B.shape}")
        check_partitions(B.shape[1] - 1)
        if np.any(np.diff(B, axis=1) < 0):
            raise ConfigurationError("grid boundaries must be non-decreasing")
        B.setflags(write=False)
        self.boundaries = B
        self.dtype = np.min_scalar_type(self.partitions - 1)

    @property
    def partitions(self) -> int:
        return self.boundaries.shape[1] - 1

    @property
    def dimensionality(self) -> int:
        return self.boundaries.shape[0]

    @property
    def lower_edges(self) -> np.ndarray:
        """(D, P) lower boundary of every cell."""
        return self.boundaries[:, :-1]

    @property
    def upper_edges(self) -> np.ndarray:
        """(D, P) upper boundary of every cell."""
        return self.boundaries[:, 1:]

    def _locate(self, d: int, values: np.ndarray) -> np.ndarray:
        # last boundary <= value; duplicates resolve to the highest such cell
        return np.searchsorted(self.boundaries[d], values, side="right") - 1

    def warn_outside(self, v: np.ndarray) -> bool:
        """Log a warning if v lies outside the grid in any dimension; True if it does."""
        v = np.asarray(v, dtype=np.float64)
        below = np.flatnonzero(v < self.boundaries[:, 0]).tolist()
        above = np.flatnonzero(v > self.boundaries[:, -1]).tolist()
        if below or above:
            logger.warning("Vector outside of VA-file grid (below in dims %s, above in dims %s); clamped",
                           below, above)
        return bool(below or above)

    def approximate(self, v: np.ndarray) -> np.ndarray:
        """
        Cell index per dimension for a single vector.
        Values outside the grid are clamped to the first or last cell and
        a warning is logged; the result is still usable for bounds.
        """
        v = np.asarray(v, dtype=np.float64)
        self.warn_outside(v)
        cells = np.empty(self.dimensionality, dtype=np.int64)
        for d in range(self.dimensionality):
            cells[d] = self._locate(d, v[d])
        return np.clip(cells, 0, self.partitions - 1).astype(self.dtype)

    def approximate_all(self, X: np.ndarray) -> np.ndarray:
        """(N, D) approximations for vectors the grid was built from."""
        A = np.empty(X.shape, dtype=self.dtype)
        P = self.partitions
        for d in range(self.dimensionality):
            A[:, d] = np.clip(self._locate(d, X[:, d]), 0, P - 1)
        return A


def build_grid(relation: VectorRelation, partitions: int) -> QuantileGrid:
    """Equal-count quantile boundaries per dimension. O(D * N log N)."""
    P = check_partitions(partitions)
    n = len(relation)
    if n == 0:
        raise ConfigurationError("cannot build a grid over an empty dataset")
    S = np.sort(relation.matrix, axis=0)
    ranks = (np.arange(P) * n) // P
    B = np.empty((relation.dimensionality, P + 1), dtype=np.float64)
    B[:, :P] = S[ranks].T
    # nextafter keeps the maximum strictly inside when epsilon is below float resolution
    B[:, P] = np.maximum(S[-1] + GRID_EPSILON, np.nextafter(S[-1], np.inf))
    logger.debug("grid: %d dims x %d partitions over %d vectors", B.shape[0], P, n)
    return QuantileGrid(B)
