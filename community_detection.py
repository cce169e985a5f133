#!/usr/bin/env python
# coding: utf-8
"""
============================================================
EMAIL NETWORK · COMMUNITY DETECTION (LOUVAIN)
============================================================
Modularity optimisation in two alternating phases:

  1. local moving: every node starts alone; a node leaves its
     community only for a neighbouring one whose gain is strictly
     above staying (ties between those go to the lowest community
     id); sweeps repeat until a full sweep moves nothing.
  2. aggregation: communities become nodes of a smaller,
     weighted graph; internal weight is kept as a self-loop.

Levels are an explicit loop (one _LevelGraph per level, plus a
flat membership list mapping original vertices to the current
level's nodes), so depth never grows the call stack.

Stops when aggregation would not shrink the graph, when a level
improves modularity by no more than `epsilon`, or after
`max_passes` levels.
============================================================
"""

from typing import Dict, Hashable, List, Mapping, Tuple

from pydantic import BaseModel, ConfigDict

from graph_store import FrozenGraph

DEFAULT_EPSILON = 1e-7
DEFAULT_MAX_PASSES = 32


class CommunityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    assignment: Dict[str, int]
    modularity: float
    levels: int

    @property
    def community_count(self) -> int:
        return len(set(self.assignment.values()))

    def members(self) -> Dict[int, List[str]]:
        groups: Dict[int, List[str]] = {}
        for v, cid in self.assignment.items():
            groups.setdefault(cid, []).append(v)
        return groups


# ---------------------------------------------------------------------------
# Weighted graph of one aggregation level
# ---------------------------------------------------------------------------

class _LevelGraph:
    __slots__ = ("nbrs", "loops", "degrees", "total_weight")

    def __init__(self, nbrs: List[Dict[int, float]], loops: List[float]):
        self.nbrs = nbrs      # nbrs[i] = {j: weight}, j != i
        self.loops = loops    # self-loop (internal) weight of node i
        self.degrees = [sum(n.values()) + 2.0 * l for n, l in zip(nbrs, loops)]
        self.total_weight = sum(self.degrees) / 2.0

    @classmethod
    def from_frozen(cls, graph: FrozenGraph) -> "_LevelGraph":
        nbrs = [{j: 1.0 for j in adj} for adj in graph.adjacency]
        return cls(nbrs, [0.0] * len(nbrs))

    def __len__(self):
        return len(self.nbrs)


def _level_modularity(inside: List[float], tot: List[float], m: float) -> float:
    if m == 0:
        return 0.0
    m2 = 2.0 * m
    q = 0.0
    for c in range(len(tot)):
        if tot[c] > 0:
            q += inside[c] / m - (tot[c] / m2) ** 2
    return q


def _renumber(com: List[int]) -> Tuple[List[int], int]:
    """Relabel communities 0..k-1 in order of first appearance."""
    mapping: Dict[int, int] = {}
    out = []
    for c in com:
        if c not in mapping:
            mapping[c] = len(mapping)
        out.append(mapping[c])
    return out, len(mapping)


def _best_community(links: Dict[int, float], tot: List[float], old: int, ki: float, m2: float) -> int:
    """
    Community node i should belong to, with i already removed from `old`.
    Another community wins only on a gain strictly above staying; among
    equally good other communities the lowest id wins.
    """
    stay_gain = links.get(old, 0.0) - tot[old] * ki / m2
    best = old
    best_gain = None
    for c, w in links.items():
        if c == old:
            continue
        gain = w - tot[c] * ki / m2
        if best_gain is None or gain > best_gain or (gain == best_gain and c < best):
            best, best_gain = c, gain
    if best_gain is None or best_gain <= stay_gain:
        return old
    return best


def _local_moving(level: _LevelGraph) -> Tuple[List[int], float]:
    """Phase 1. Returns (community per node, modularity of that partition)."""
    n = len(level)
    m = level.total_weight
    m2 = 2.0 * m
    com = list(range(n))
    tot = list(level.degrees)
    inside = list(level.loops)

    moved = True
    while moved:
        moved = False
        for i in range(n):
            ki = level.degrees[i]
            if ki == 0:
                continue
            old = com[i]

            # weight from i to each neighbouring community
            links: Dict[int, float] = {}
            for j, w in level.nbrs[i].items():
                links[com[j]] = links.get(com[j], 0.0) + w

            tot[old] -= ki
            inside[old] -= links.get(old, 0.0) + level.loops[i]

            best = _best_community(links, tot, old, ki, m2)

            tot[best] += ki
            inside[best] += links.get(best, 0.0) + level.loops[i]
            if best != old:
                com[i] = best
                moved = True

    return com, _level_modularity(inside, tot, m)


def _aggregate(level: _LevelGraph, partition: List[int], k: int) -> _LevelGraph:
    """Phase 2. One node per community; inter-community weights summed."""
    nbrs: List[Dict[int, float]] = [{} for _ in range(k)]
    loops = [0.0] * k
    for i in range(len(level)):
        ci = partition[i]
        loops[ci] += level.loops[i]
        for j, w in level.nbrs[i].items():
            cj = partition[j]
            if ci == cj:
                if j > i:   # each internal edge once
                    loops[ci] += w
            else:
                nbrs[ci][cj] = nbrs[ci].get(cj, 0.0) + w
    return _LevelGraph(nbrs, loops)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def modularity(graph: FrozenGraph, assignment: Mapping[str, Hashable]) -> float:
    """
    Newman modularity of `assignment` on the unweighted graph.
    Vertices absent from `assignment` count as singletons. A graph
    without edges has modularity 0.
    """
    m = graph.edge_count()
    if m == 0:
        return 0.0

    vertices = graph.vertices
    labels = [assignment.get(v, ("__singleton__", v)) for v in vertices]
    inside: Dict[Hashable, float] = {}
    tot: Dict[Hashable, float] = {}
    for i, nbrs in enumerate(graph.adjacency):
        c = labels[i]
        tot[c] = tot.get(c, 0.0) + len(nbrs)
        for j in nbrs:
            if j > i and labels[j] == c:
                inside[c] = inside.get(c, 0.0) + 1.0

    m2 = 2.0 * m
    return sum(inside.get(c, 0.0) / m - (t / m2) ** 2 for c, t in tot.items())


def detect_communities(
    graph: FrozenGraph,
    epsilon: float = DEFAULT_EPSILON,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> CommunityResult:
    vertices = graph.vertices
    n = len(vertices)
    singletons = {v: i for i, v in enumerate(vertices)}
    if n == 0 or graph.edge_count() == 0:
        return CommunityResult(assignment=singletons, modularity=0.0, levels=0)

    level = _LevelGraph.from_frozen(graph)
    membership = list(range(n))   # original vertex → node of current level
    mod = _level_modularity(level.loops, level.degrees, level.total_weight)
    levels = 0

    while levels < max_passes:
        com, new_mod = _local_moving(level)
        partition, k = _renumber(com)
        if k == len(level):
            break

        membership = [partition[node] for node in membership]
        level = _aggregate(level, partition, k)
        levels += 1

        if new_mod - mod <= epsilon:
            break
        mod = new_mod

    final, _ = _renumber(membership)
    assignment = {v: final[i] for i, v in enumerate(vertices)}
    return CommunityResult(
        assignment=assignment,
        modularity=modularity(graph, assignment),
        levels=levels,
    )
