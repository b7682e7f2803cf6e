"""
VA-file: vector approximation file similarity index.

Exact k-nearest-neighbor and range search over a static set of vectors.
Each vector is stored as a compact per-dimension cell index on a quantile
grid; cheap Lp bounds on those cells prune most candidates before any
exact distance is computed.
"""

from .config import VAFileConfig
from .distance import (
    CosineDistance,
    Distance,
    EuclideanDistance,
    LPNormDistance,
    ManhattanDistance,
    MaximumDistance,
)
from .errors import ConfigurationError, IndexStateError, VAFileError
from .heap import BoundedHeap
from .index import VAFile, VAFileFactory, get_knn_searcher, get_range_searcher
from .linear_scan import LinearScanSearcher
from .relation import VectorRelation

__version__ = "0.1.0"
__all__ = [
    "VAFile",
    "VAFileFactory",
    "VAFileConfig",
    "VectorRelation",
    "Distance",
    "LPNormDistance",
    "EuclideanDistance",
    "ManhattanDistance",
    "MaximumDistance",
    "CosineDistance",
    "LinearScanSearcher",
    "BoundedHeap",
    "get_knn_searcher",
    "get_range_searcher",
    "VAFileError",
    "ConfigurationError",
    "IndexStateError",
]
