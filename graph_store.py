#!/usr/bin/env python
# coding: utf-8
"""
============================================================
EMAIL NETWORK · GRAPH STORE
============================================================
Undirected, unweighted communication graph.

  EmailGraph: mutable while ingesting (single writer)
  FrozenGraph: read-only view handed to every analytic

Design decisions:
  - Self-pairs (sender == recipient) are silently ignored.
  - Re-inserting an existing edge is a no-op.
  - freeze() is the only mutable → read-only transition; any
    write afterwards raises GraphFrozenError.
  - Vertices and neighbors keep insertion order, so every BFS
    over the frozen view walks the graph in the same order.
============================================================
"""

from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Tuple

import networkx as nx


class GraphFrozenError(RuntimeError):
    """Raised when an edge is added after the graph was frozen."""


# ---------------------------------------------------------------------------
# Mutable store (ingestion)
# ---------------------------------------------------------------------------

class EmailGraph:
    """Vertex set + symmetric adjacency, built once from (sender, recipient) pairs."""

    def __init__(self):
        # dict-as-ordered-set: {vertex: {neighbor: None}}
        self._adj: Dict[str, Dict[str, None]] = {}
        self._n_edges = 0
        self._frozen: Optional["FrozenGraph"] = None

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def add_edge(self, a: str, b: str) -> bool:
        """Insert the undirected edge a–b. Returns True if the edge is new."""
        if self._frozen is not None:
            raise GraphFrozenError("graph is frozen; no edges can be added")
        if a == b:
            return False

        a_nbrs = self._adj.setdefault(a, {})
        b_nbrs = self._adj.setdefault(b, {})
        if b in a_nbrs:
            return False

        a_nbrs[b] = None
        b_nbrs[a] = None
        self._n_edges += 1
        return True

    def add_vertex(self, v: str) -> bool:
        """Insert an isolated vertex. Returns True if it was absent."""
        if self._frozen is not None:
            raise GraphFrozenError("graph is frozen; no vertices can be added")
        if v in self._adj:
            return False
        self._adj[v] = {}
        return True

    def add_edges(self, pairs: Iterable[Tuple[str, str]]) -> int:
        """Bulk ingestion; returns how many pairs created a new edge."""
        added = 0
        for a, b in pairs:
            if self.add_edge(a, b):
                added += 1
        return added

    def neighbors(self, v: str) -> FrozenSet[str]:
        return frozenset(self._adj.get(v, ()))

    def degree(self, v: str) -> int:
        return len(self._adj.get(v, ()))

    def vertex_count(self) -> int:
        return len(self._adj)

    def edge_count(self) -> int:
        return self._n_edges

    def __contains__(self, v) -> bool:
        return v in self._adj

    def __len__(self) -> int:
        return len(self._adj)

    def freeze(self) -> "FrozenGraph":
        """Stop ingestion and return the read-only view (same object on repeat calls)."""
        if self._frozen is None:
            self._frozen = FrozenGraph(self._adj, self._n_edges)
        return self._frozen


# ---------------------------------------------------------------------------
# Read-only view (analytics)
# ---------------------------------------------------------------------------

class FrozenGraph:
    """
    Immutable snapshot of an EmailGraph.

    Besides the name-based queries it exposes an integer-indexed
    adjacency (`adjacency[i]` is a tuple of neighbor indices) which
    the analytics use; it pickles cheaply into worker processes.
    """

    __slots__ = ("_vertices", "_index", "_adjacency", "_n_edges")

    def __init__(self, adj: Dict[str, Dict[str, None]], n_edges: int):
        vertices = tuple(adj)
        index = {v: i for i, v in enumerate(vertices)}
        adjacency = tuple(
            tuple(sorted(index[u] for u in adj[v]))
            for v in vertices
        )
        object.__setattr__(self, "_vertices", vertices)
        object.__setattr__(self, "_index", index)
        object.__setattr__(self, "_adjacency", adjacency)
        object.__setattr__(self, "_n_edges", n_edges)

    def __setattr__(self, name, value):
        raise AttributeError("FrozenGraph is read-only")

    def __getstate__(self):
        return self._vertices, self._adjacency, self._n_edges

    def __setstate__(self, state):
        vertices, adjacency, n_edges = state
        object.__setattr__(self, "_vertices", vertices)
        object.__setattr__(self, "_index", {v: i for i, v in enumerate(vertices)})
        object.__setattr__(self, "_adjacency", adjacency)
        object.__setattr__(self, "_n_edges", n_edges)

    # ── name-based queries ───────────────────────────────────────────
    @property
    def vertices(self) -> Tuple[str, ...]:
        return self._vertices

    def neighbors(self, v: str) -> FrozenSet[str]:
        i = self._index.get(v)
        if i is None:
            return frozenset()
        return frozenset(self._vertices[j] for j in self._adjacency[i])

    def degree(self, v: str) -> int:
        i = self._index.get(v)
        return 0 if i is None else len(self._adjacency[i])

    def vertex_count(self) -> int:
        return len(self._vertices)

    def edge_count(self) -> int:
        return self._n_edges

    def __contains__(self, v) -> bool:
        return v in self._index

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[str]:
        return iter(self._vertices)

    # ── index-based access ───────────────────────────────────────────
    @property
    def adjacency(self) -> Tuple[Tuple[int, ...], ...]:
        return self._adjacency

    def index_of(self, v: str) -> Optional[int]:
        return self._index.get(v)

    def edges(self) -> Iterator[Tuple[str, str]]:
        """Each undirected edge once, as (lower-index, higher-index) vertex names."""
        for i, nbrs in enumerate(self._adjacency):
            for j in nbrs:
                if j > i:
                    yield self._vertices[i], self._vertices[j]

    def to_networkx(self) -> nx.Graph:
        G = nx.Graph()
        G.add_nodes_from(self._vertices)
        G.add_edges_from(self.edges())
        return G


def build_graph(pairs: Iterable[Tuple[str, str]]) -> FrozenGraph:
    """Ingest every pair, then freeze."""
    graph = EmailGraph()
    graph.add_edges(pairs)
    return graph.freeze()
