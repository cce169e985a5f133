"""Degree distribution: raw vertex counts per degree, ascending."""

from collections import Counter
from typing import List, Tuple

from graph_store import FrozenGraph


def degree_histogram(graph: FrozenGraph) -> List[Tuple[int, int]]:
    """Raw vertex counts per degree, as (degree, count) pairs sorted by degree."""
    degree_dist = Counter(graph.degree(v) for v in graph)
    return sorted(degree_dist.items())
