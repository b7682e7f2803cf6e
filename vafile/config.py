"""
Construction parameters for the VA-file.

Defaults follow the usual VA-file setup: 1 KiB simulated pages and the
smallest legal grid (2 cells per dimension).
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from numbers import Integral, Real

from .errors import ConfigurationError


DEFAULT_PAGE_SIZE = 1024
DEFAULT_PARTITIONS = 2

# Added to the top grid boundary so the maximum value lands inside the last cell
GRID_EPSILON = 1e-6

# Bytes charged per record for the object identifier (one int32)
ID_BYTES = 4


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def check_partitions(partitions: int) -> int:
    if isinstance(partitions, bool) or not isinstance(partitions, Integral):
        raise ConfigurationError(f"partitions must be an integer, got {partitions!r}")
    if partitions < 2:
        raise ConfigurationError(f"partitions must be greater than one, got {partitions}")
    if not is_power_of_two(partitions):
        raise ConfigurationError(f"partitions must be a power of 2, got {partitions}")
    return int(partitions)


def check_page_size(page_size: int) -> int:
    if isinstance(page_size, bool) or not isinstance(page_size, Integral):
        raise ConfigurationError(f"page_size must be an integer, got {page_size!r}")
    if page_size < 1:
        raise ConfigurationError(f"page_size must be positive, got {page_size}")
    return int(page_size)


def check_k(k: int, size: int) -> int:
    if isinstance(k, bool) or not isinstance(k, Integral) or not 1 <= k <= size:
        raise ConfigurationError(f"k must be an integer in [1, {size}], got {k!r}")
    return int(k)


def check_radius(eps: float) -> float:
    if isinstance(eps, bool) or not isinstance(eps, Real) or not 0 <= eps < math.inf:
        raise ConfigurationError(f"radius must be a finite non-negative number, got {eps!r}")
    return float(eps)


@dataclass(frozen=True)
class VAFileConfig:
    """Validated at construction; invalid values raise ConfigurationError."""
    partitions: int = DEFAULT_PARTITIONS
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        check_partitions(self.partitions)
        check_page_size(self.page_size)
