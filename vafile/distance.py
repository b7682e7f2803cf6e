"""
Exact distance functions.

Each distance answers as_minkowski(): the Lp exponent if it is an Lp norm,
else None. Indexes use this to decide once, when a searcher is created,
whether bound-based pruning is possible.
"""

from __future__ import annotations
import math
from typing import Optional
import numpy as np

from .errors import ConfigurationError


def l2_normalize_rows(x: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """Row-wise L2 normalization with a small floor."""
    n = np.linalg.norm(x, axis=1, keepdims=True)
    n = np.maximum(n, eps)
    return x / n


class Distance:
    name = "distance"

    def distance(self, a: np.ndarray, b: np.ndarray) -> float:
        raise NotImplementedError

    def distances(self, q: np.ndarray, X: np.ndarray) -> np.ndarray:
        """Distances from q to every row of X."""
        return np.array([self.distance(q, x) for x in X], dtype=np.float64)

    def as_minkowski(self) -> Optional[float]:
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LPNormDistance(Distance):
    """(Σ|a_i - b_i|^p)^(1/p); p = inf gives the maximum norm."""

    def __init__(self, p: float):
        p = float(p)
        if not p >= 1.0:
            raise ConfigurationError(f"Lp norm needs p >= 1, got {p}")
        self.p = p

    @property
    def name(self) -> str:
        return f"l{self.p:g}"

    def distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(self.distances(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)[None, :])[0])

    def distances(self, q: np.ndarray, X: np.ndarray) -> np.ndarray:
        diff = np.abs(X - q[None, :])
        if math.isinf(self.p):
            return diff.max(axis=1)
        if self.p == 1.0:
            return diff.sum(axis=1)
        if self.p == 2.0:
            return np.sqrt(np.einsum("ij,ij->i", diff, diff))
        return np.sum(diff ** self.p, axis=1) ** (1.0 / self.p)

    def as_minkowski(self) -> Optional[float]:
        return self.p

    def __repr__(self) -> str:
        return f"{type(self).__name__}(p={self.p:g})"


class EuclideanDistance(LPNormDistance):
    def __init__(self):
        super().__init__(2.0)

    def __repr__(self) -> str:
        return "EuclideanDistance()"


class ManhattanDistance(LPNormDistance):
    def __init__(self):
        super().__init__(1.0)

    def __repr__(self) -> str:
        return "ManhattanDistance()"


class MaximumDistance(LPNormDistance):
    def __init__(self):
        super().__init__(math.inf)

    def __repr__(self) -> str:
        return "MaximumDistance()"


class CosineDistance(Distance):
    """1 - cos(a, b). Not an Lp norm, so VA-file bounds do not apply."""
    name = "cosine"

    def distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(self.distances(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)[None, :])[0])

    def distances(self, q: np.ndarray, X: np.ndarray) -> np.ndarray:
        qn = l2_normalize_rows(q[None, :])[0]
        return 1.0 - l2_normalize_rows(X) @ qn


def distance_by_name(name: str) -> Distance:
    """Resolve a CLI metric name: l1, l2, linf, cosine or lp:<p>."""
    key = name.strip().lower()
    if key in ("l2", "euclidean"):
        return EuclideanDistance()
    if key in ("l1", "manhattan"):
        return ManhattanDistance()
    if key in ("linf", "max", "maximum"):
        return MaximumDistance()
    if key == "cosine":
        return CosineDistance()
    if key.startswith("lp:"):
        return LPNormDistance(float(key[3:]))
    raise ConfigurationError(f"unknown distance {name!r}")
