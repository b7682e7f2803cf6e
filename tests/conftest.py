import numpy as np
import pytest

from vafile import VAFile, VectorRelation


@pytest.fixture
def sample_vectors():
    """Generate sample vectors for testing."""
    np.random.seed(42)
    return np.random.randn(500, 6)


@pytest.fixture
def sample_queries():
    np.random.seed(7)
    return np.random.randn(10, 6)


@pytest.fixture
def relation(sample_vectors):
    return VectorRelation(sample_vectors)


@pytest.fixture
def index(relation):
    return VAFile(relation, partitions=8, page_size=256).initialize()


@pytest.fixture
def eight_points():
    """Eight 2-d points with distinct distances to the origin."""
    return np.array([
        [1.0, 1.0],
        [2.0, 2.0],
        [3.0, 1.0],
        [-1.0, -2.0],
        [4.0, 4.0],
        [-3.0, 3.0],
        [0.5, -0.5],
        [5.0, -5.0],
    ])
