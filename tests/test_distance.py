"""
Tests for distance functions and the Minkowski capability query.
"""

import math

import numpy as np
import pytest

from vafile import (
    ConfigurationError,
    CosineDistance,
    EuclideanDistance,
    LPNormDistance,
    ManhattanDistance,
    MaximumDistance,
)
from vafile.distance import distance_by_name


def test_calculate_distance():
    a = np.array([1.0, 0.0, 0.0])
    b = np.array([0.0, 1.0, 0.0])
    assert EuclideanDistance().distance(a, b) == pytest.approx(math.sqrt(2))
    assert ManhattanDistance().distance(a, b) == pytest.approx(2.0)
    assert MaximumDistance().distance(a, b) == pytest.approx(1.0)
    assert LPNormDistance(3).distance(a, b) == pytest.approx(2 ** (1 / 3))
    assert CosineDistance().distance(a, b) == pytest.approx(1.0)  # Orthogonal vectors


def test_batch_matches_pairwise(sample_vectors):
    q = sample_vectors[0]
    for dist in (EuclideanDistance(), ManhattanDistance(), MaximumDistance(),
                 LPNormDistance(1.5), CosineDistance()):
        batch = dist.distances(q, sample_vectors[:20])
        single = [dist.distance(q, x) for x in sample_vectors[:20]]
        assert np.allclose(batch, single)


def test_as_minkowski():
    assert EuclideanDistance().as_minkowski() == 2.0
    assert ManhattanDistance().as_minkowski() == 1.0
    assert MaximumDistance().as_minkowski() == math.inf
    assert LPNormDistance(4).as_minkowski() == 4.0
    assert CosineDistance().as_minkowski() is None


@pytest.mark.parametrize("p", [0.5, 0.0, -1.0, float("nan")])
def test_lp_exponent_below_one_rejected(p):
    with pytest.raises(ConfigurationError):
        LPNormDistance(p)


def test_distance_by_name():
    assert isinstance(distance_by_name("L2"), EuclideanDistance)
    assert isinstance(distance_by_name("manhattan"), ManhattanDistance)
    assert isinstance(distance_by_name("linf"), MaximumDistance)
    assert isinstance(distance_by_name("cosine"), CosineDistance)
    assert distance_by_name("lp:3").p == 3.0
    with pytest.raises(ConfigurationError):
        distance_by_name("hamming")
