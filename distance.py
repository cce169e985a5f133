"""
Average shortest-path length via all-sources BFS.

Aggregation policy: only ORDERED pairs (u, v), u != v, with v reachable
from u are counted. Pairs in different connected components contribute
to neither the distance sum nor the pair count, so on a disconnected
graph the reported average is the mean *within-component* distance and
understates how far apart the network really is.
"""

from collections import deque
from typing import Dict, List, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from graph_store import FrozenGraph
from parallel import DEFAULT_CHUNK_SIZE, map_source_chunks


class AverageDistance(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float = Field(description="Mean hop count over ordered reachable pairs.")
    total_distance: int = Field(ge=0, description="Sum of hop counts over those pairs.")
    pair_count: int = Field(gt=0, description="Number of ordered reachable pairs (u != v).")

    @property
    def applicable(self) -> bool:
        return True


class NotApplicable(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str

    @property
    def applicable(self) -> bool:
        return False


DistanceResult = Union[AverageDistance, NotApplicable]


def bfs_indices(adjacency: Tuple[Tuple[int, ...], ...], source: int) -> List[int]:
    """Hop distance from `source` to every vertex index; -1 when unreached."""
    dist = [-1] * len(adjacency)
    dist[source] = 0
    frontier = deque([source])
    while frontier:
        v = frontier.popleft()
        d = dist[v] + 1
        for w in adjacency[v]:
            if dist[w] < 0:
                dist[w] = d
                frontier.append(w)
    return dist


def bfs(graph: FrozenGraph, source: str) -> Dict[str, int]:
    """Distance table for `source`: reachable vertex → hops. Unknown source → {}."""
    s = graph.index_of(source)
    if s is None:
        return {}
    vertices = graph.vertices
    return {
        vertices[i]: d
        for i, d in enumerate(bfs_indices(graph.adjacency, s))
        if d >= 0
    }


def _distance_chunk(graph: FrozenGraph, start: int, stop: int) -> Tuple[int, int]:
    """(distance sum, reachable pair count) for sources in [start, stop)."""
    adjacency = graph.adjacency
    total = 0
    pairs = 0
    for s in range(start, stop):
        for d in bfs_indices(adjacency, s):
            if d > 0:
                total += d
                pairs += 1
    return total, pairs


def average_distance(
    graph: FrozenGraph,
    workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: bool = False,
) -> DistanceResult:
    n = graph.vertex_count()
    if n < 2:
        return NotApplicable(reason=f"graph has {n} vertex(es); need at least 2")

    partials = map_source_chunks(
        _distance_chunk, graph,
        workers=workers, chunk_size=chunk_size,
        desc="  BFS (distance)", progress=progress,
    )
    total = sum(t for t, _ in partials)
    pairs = sum(p for _, p in partials)

    if pairs == 0:
        return NotApplicable(reason="no vertex pair is connected by a path")
    return AverageDistance(value=total / pairs, total_distance=total, pair_count=pairs)
