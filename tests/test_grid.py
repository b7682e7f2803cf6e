"""
Tests for the quantile grid and vector approximations.
"""

import logging

import numpy as np
import pytest

from vafile import ConfigurationError, VectorRelation
from vafile.config import GRID_EPSILON
from vafile.grid import QuantileGrid, build_grid


@pytest.mark.parametrize("partitions", [2, 4, 16, 64])
def test_grid_validity(relation, partitions):
    """Boundaries are non-decreasing and cover the observed range."""
    grid = build_grid(relation, partitions)
    B = grid.boundaries
    assert B.shape == (relation.dimensionality, partitions + 1)
    assert np.all(np.diff(B, axis=1) >= 0)
    X = relation.matrix
    assert np.all(X.min(axis=0) >= B[:, 0])
    assert np.all(X.max(axis=0) < B[:, -1])


def test_quantile_boundaries():
    """boundary[b] is the sorted value at rank floor(b * n / P)."""
    values = np.arange(10, dtype=float)[::-1].reshape(-1, 1)
    grid = build_grid(VectorRelation(values), 4)
    # ranks 0, 2, 5, 7 of 0..9
    assert grid.boundaries[0, :4].tolist() == [0.0, 2.0, 5.0, 7.0]
    assert grid.boundaries[0, 4] == pytest.approx(9.0 + GRID_EPSILON)


def test_top_boundary_strict_for_large_values():
    """The maximum stays strictly inside even when epsilon is below float resolution."""
    X = np.array([[1e12], [2e12], [3e12]])
    grid = build_grid(VectorRelation(X), 2)
    assert grid.boundaries[0, -1] > 3e12


@pytest.mark.parametrize("partitions", [3, 6, 12])
def test_partitions_must_be_power_of_two(relation, partitions):
    with pytest.raises(ConfigurationError):
        build_grid(relation, partitions)


@pytest.mark.parametrize("partitions", [0, 1, -4])
def test_partitions_must_exceed_one(relation, partitions):
    with pytest.raises(ConfigurationError):
        build_grid(relation, partitions)


def test_approximations_lie_in_their_cells(relation):
    """Every indexed value satisfies boundary[c] <= x < boundary[c + 1]."""
    grid = build_grid(relation, 8)
    A = grid.approximate_all(relation.matrix)
    assert A.shape == relation.matrix.shape
    assert A.min() >= 0 and A.max() <= 7
    dims = np.arange(relation.dimensionality)[None, :]
    lo = grid.boundaries[dims, A]
    hi = grid.boundaries[dims, A.astype(int) + 1]
    assert np.all(lo <= relation.matrix)
    assert np.all(relation.matrix < hi)


def test_single_and_bulk_approximation_agree(relation):
    grid = build_grid(relation, 16)
    A = grid.approximate_all(relation.matrix)
    for row in range(0, len(relation), 50):
        assert grid.approximate(relation.matrix[row]).tolist() == A[row].tolist()


def test_compact_dtype(relation):
    assert build_grid(relation, 16).approximate_all(relation.matrix).dtype == np.uint8
    assert build_grid(relation, 512).dtype == np.uint16


def test_duplicate_values_use_highest_matching_cell():
    """Constant columns collapse to the last cell, which still contains the value."""
    X = np.array([[1.0, 0.0], [1.0, 1.0], [1.0, 2.0], [1.0, 3.0]])
    grid = build_grid(VectorRelation(X), 2)
    A = grid.approximate_all(X)
    assert A[:, 0].tolist() == [1, 1, 1, 1]
    assert A[:, 1].tolist() == [0, 0, 1, 1]


def test_out_of_grid_values_are_clamped_with_warning(caplog):
    """Below the grid clamps to cell 0, above to the last cell; both warn."""
    X = np.linspace(0.0, 1.0, 16).reshape(-1, 2)
    grid = build_grid(VectorRelation(X), 4)

    with caplog.at_level(logging.WARNING, logger="vafile.grid"):
        cells = grid.approximate(np.array([-5.0, 7.0]))
    assert cells.tolist() == [0, 3]
    assert "outside of VA-file grid" in caplog.text

    caplog.clear()
    with caplog.at_level(logging.WARNING, logger="vafile.grid"):
        grid.approximate(np.array([0.5, 0.5]))
    assert caplog.text == ""


def test_warn_outside_reports_only_out_of_grid_vectors(caplog):
    X = np.linspace(0.0, 1.0, 16).reshape(-1, 2)
    grid = build_grid(VectorRelation(X), 4)

    with caplog.at_level(logging.WARNING, logger="vafile.grid"):
        assert grid.warn_outside(np.array([0.5, 2.0])) is True
    assert "above in dims [1]" in caplog.text

    caplog.clear()
    with caplog.at_level(logging.WARNING, logger="vafile.grid"):
        # the top data value sits strictly inside the grid
        assert grid.warn_outside(np.array([0.0, 1.0])) is False
    assert caplog.text == ""


def test_grid_is_immutable(relation):
    grid = build_grid(relation, 4)
    with pytest.raises(ValueError):
        grid.boundaries[0, 0] = 10.0


def test_grid_rejects_decreasing_boundaries():
    with pytest.raises(ConfigurationError):
        QuantileGrid(np.array([[0.0, 2.0, 1.0]]))
