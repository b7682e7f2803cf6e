"""
Tests for the bounded heap.
"""

import math

import pytest

from vafile import BoundedHeap


def test_keeps_smallest_keys():
    """Only the capacity smallest keys survive, returned ascending."""
    heap = BoundedHeap(3)
    for key, item in [(5.0, "a"), (1.0, "b"), (4.0, "c"), (2.0, "d"), (3.0, "e")]:
        heap.offer(key, item)
    assert len(heap) == 3
    assert heap.items() == [(1.0, "b"), (2.0, "d"), (3.0, "e")]
    assert heap.worst() == 3.0


def test_reverse_keeps_largest_keys():
    """reverse=True keeps the largest keys, returned descending."""
    heap = BoundedHeap(2, reverse=True)
    for key in [0.1, 0.9, 0.5, 0.7]:
        heap.offer(key, key)
    assert [k for k, _ in heap.items()] == [0.9, 0.7]
    assert heap.worst() == 0.7


def test_threshold_is_neutral_until_full():
    """threshold() is +inf until capacity is reached, then the worst key."""
    heap = BoundedHeap(2)
    assert heap.threshold() == math.inf
    heap.offer(3.0)
    assert heap.threshold() == math.inf
    heap.offer(1.0)
    assert heap.threshold() == 3.0
    heap.offer(2.0)
    assert heap.threshold() == 2.0

    rev = BoundedHeap(1, reverse=True)
    assert rev.threshold() == -math.inf


def test_ties_prefer_earlier_offers():
    """Equal keys keep encounter order and never evict an earlier entry."""
    heap = BoundedHeap(2)
    assert heap.offer(1.0, "first")
    assert heap.offer(1.0, "second")
    assert not heap.offer(1.0, "third")
    assert heap.items() == [(1.0, "first"), (1.0, "second")]

    heap = BoundedHeap(2)
    heap.offer(2.0, "x")
    heap.offer(2.0, "y")
    heap.offer(1.0, "z")
    assert heap.items() == [(1.0, "z"), (2.0, "x")]


def test_invalid_capacity():
    with pytest.raises(ValueError):
        BoundedHeap(0)


def test_worst_on_empty_heap():
    with pytest.raises(IndexError):
        BoundedHeap(1).worst()
