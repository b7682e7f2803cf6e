"""
Dataset accessor and matrix loaders.

A VectorRelation is the static snapshot an index is built from: a dense
(N, D) float64 matrix plus one integer identifier per row.

Loaders:
  • FastText .vec (first line: N D; subsequent lines: token + D floats)
  • Binary with ASCII header lines (N, D) followed by N*D float32
  • .fvecs (FAISS/SIFT style): [dim:int32][dim*float32] repeated
Files with more than max_rows rows are subsampled uniformly with a fixed seed.
"""

from __future__ import annotations
import io, struct
from typing import Dict, Iterator, Optional, Sequence
import numpy as np

from .errors import ConfigurationError


class VectorRelation:
    """Read-only view of N vectors of dimensionality D, keyed by identifier."""

    def __init__(self, data, ids: Optional[Sequence[int]] = None):
        X = np.array(data, dtype=np.float64, copy=True)
        if X.ndim != 2:
            raise ConfigurationError(f"expected a 2-d matrix, got shape {X.shape}")
        if X.shape[0] == 0 or X.shape[1] == 0:
            raise ConfigurationError("cannot index an empty dataset")
        if not np.all(np.isfinite(X)):
            raise ConfigurationError("dataset contains NaN or infinite values")
        if ids is None:
            ids = range(X.shape[0])
        id_arr = np.asarray(list(ids), dtype=np.int64)
        if id_arr.shape != (X.shape[0],):
            raise ConfigurationError(f"got {id_arr.size} identifiers for {X.shape[0]} vectors")
        if np.unique(id_arr).size != id_arr.size:
            raise ConfigurationError("identifiers must be unique")
        X.setflags(write=False)
        id_arr.setflags(write=False)
        self._data = X
        self._ids = id_arr
        self._offset: Dict[int, int] = {int(i): row for row, i in enumerate(id_arr)}

    def __len__(self) -> int:
        return self._data.shape[0]

    def __iter__(self) -> Iterator[int]:
        return (int(i) for i in self._ids)

    def __repr__(self) -> str:
        return f"VectorRelation(size={len(self)}, dimensionality={self.dimensionality})"

    @property
    def dimensionality(self) -> int:
        return self._data.shape[1]

    @property
    def ids(self) -> np.ndarray:
        return self._ids

    @property
    def matrix(self) -> np.ndarray:
        """The (N, D) matrix in build order; read-only."""
        return self._data

    def row_of(self, oid: int) -> int:
        try:
            return self._offset[int(oid)]
        except KeyError:
            raise KeyError(f"unknown object id {oid}") from None

    def get(self, oid: int) -> np.ndarray:
        return self._data[self.row_of(oid)]


def as_query(q, dimensionality: int) -> np.ndarray:
    """Coerce a query to a finite float64 vector of the expected length."""
    v = np.asarray(q, dtype=np.float64).reshape(-1)
    if v.size != dimensionality:
        raise ConfigurationError(f"query has dimensionality {v.size}, index has {dimensionality}")
    if not np.all(np.isfinite(v)):
        raise ConfigurationError("query contains NaN or infinite values")
    return v


def _rng():
    """Fixed RNG so subsampling is reproducible."""
    return np.random.default_rng(42)


def load_vec(path: str, max_rows: int = 100_000) -> np.ndarray:
    """Load FastText .vec; subsample uniformly if N > max_rows."""
    with io.open(path, "r", encoding="utf-8", newline="\n", errors="ignore") as f:
        hdr = f.readline().strip().split()
        if len(hdr) < 2 or not hdr[0].isdigit() or not hdr[1].isdigit():
            raise ValueError("invalid .vec header")
        N, D = int(hdr[0]), int(hdr[1])

        take = min(N, max_rows)
        keep = None
        if N > max_rows:
            keep = set(_rng().choice(N, size=take, replace=False).tolist())

        X = np.zeros((take, D), dtype=np.float32)
        w = 0
        for i, line in enumerate(f):
            if w >= take:
                break
            if keep is not None and i not in keep:
                continue
            parts = line.rstrip("\n").split()
            if len(parts) < D + 1:
                continue  # short trailing line
            X[w] = np.array([float(x) for x in parts[-D:]], dtype=np.float32)
            w += 1
    return X[:w].copy() if w != take else X


def load_bin_header_body(path: str, max_rows: int = 100_000) -> np.ndarray:
    """
    Binary: first two lines are ASCII integers (N, D),
    followed by N*D float32 values.
    """
    with open(path, "rb") as f:
        N = int(f.readline().strip().decode("ascii"))
        D = int(f.readline().strip().decode("ascii"))
        buf = np.fromfile(f, dtype=np.float32, count=N * D)
    if buf.size != N * D:
        raise ValueError("truncated payload")
    return _subsample(buf.reshape(N, D), max_rows)


def load_fvecs(path: str, max_rows: int = 100_000) -> np.ndarray:
    """
    FAISS/SIFT .fvecs: each record starts with int32 dim, then 'dim' float32s.
    All records must share the first record's dimension.
    """
    with open(path, "rb") as f:
        data = f.read()
    if len(data) < 4:
        raise ValueError("bad fvecs")
    D = struct.unpack_from("<i", data, 0)[0]
    rec = 4 + 4 * D
    if D <= 0 or len(data) % rec != 0:
        raise ValueError("size mismatch")
    raw = np.frombuffer(data, dtype=np.int32).reshape(-1, D + 1)
    if np.any(raw[:, 0] != D):
        raise ValueError("mixed dimensions in fvecs")
    X = raw[:, 1:].copy().view(np.float32)
    return _subsample(X, max_rows)


def _subsample(X: np.ndarray, max_rows: int) -> np.ndarray:
    if X.shape[0] > max_rows:
        idx = np.sort(_rng().choice(X.shape[0], size=max_rows, replace=False))
        X = X[idx]
    return X.astype(np.float32, copy=False)


def load_matrix(path: str, max_rows: int = 100_000) -> np.ndarray:
    """Unified entry: route to .vec / .fvecs / ascii-header binary by extension."""
    pl = path.lower()
    if pl.endswith(".vec"):
        return load_vec(path, max_rows)
    if pl.endswith(".fvecs"):
        return load_fvecs(path, max_rows)
    return load_bin_header_body(path, max_rows)


def load_relation(path: str, max_rows: int = 100_000) -> VectorRelation:
    return VectorRelation(load_matrix(path, max_rows))
