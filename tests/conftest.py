from itertools import combinations

import pytest

from graph_store import EmailGraph, build_graph


def _clique(names):
    return list(combinations(names, 2))


@pytest.fixture
def empty_graph():
    return EmailGraph().freeze()


@pytest.fixture
def path_graph():
    """A – B – C – D"""
    return build_graph([("A", "B"), ("B", "C"), ("C", "D")])


@pytest.fixture
def complete_graph():
    def make(n):
        return build_graph(_clique([f"k{i}" for i in range(n)]))
    return make


@pytest.fixture
def star_graph():
    def make(k):
        return build_graph([("hub", f"leaf{i}") for i in range(k)])
    return make


@pytest.fixture
def two_clusters():
    """Two 5-cliques joined by the single bridge edge a0 – b0."""
    left = [f"a{i}" for i in range(5)]
    right = [f"b{i}" for i in range(5)]
    return build_graph(_clique(left) + _clique(right) + [("a0", "b0")])


@pytest.fixture
def barbell():
    """Two 4-cliques joined through the bridge vertex 'x'."""
    left = [f"a{i}" for i in range(4)]
    right = [f"b{i}" for i in range(4)]
    return build_graph(_clique(left) + _clique(right) + [("a0", "x"), ("x", "b0")])
