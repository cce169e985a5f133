"""
Betweenness centrality (Brandes, unweighted).

For every source s a BFS records shortest-path counts (sigma) and
predecessors; dependencies are then accumulated in reverse BFS order:

    delta[v] += sigma[v] / sigma[w] * (1 + delta[w])    for v in pred[w]

The score of v is the sum of delta[v] over all sources s != v, halved
because each undirected path is seen from both of its endpoints.

Sources are processed in fixed chunks, each with its own float64
accumulator; chunk accumulators are added in chunk order. The chunk
layout depends only on `chunk_size`, so scores are bit-for-bit
identical for any number of workers.
"""

from collections import deque
from typing import Dict

import numpy as np

from graph_store import FrozenGraph
from parallel import DEFAULT_CHUNK_SIZE, map_source_chunks


def _brandes_chunk(graph: FrozenGraph, start: int, stop: int) -> np.ndarray:
    adjacency = graph.adjacency
    n = len(adjacency)
    acc = np.zeros(n, dtype=np.float64)

    for s in range(start, stop):
        sigma = [0] * n
        dist = [-1] * n
        pred = [[] for _ in range(n)]
        order = []

        sigma[s] = 1
        dist[s] = 0
        frontier = deque([s])
        while frontier:
            v = frontier.popleft()
            order.append(v)
            for w in adjacency[v]:
                if dist[w] < 0:
                    dist[w] = dist[v] + 1
                    frontier.append(w)
                if dist[w] == dist[v] + 1:
                    sigma[w] += sigma[v]
                    pred[w].append(v)

        delta = [0.0] * n
        for w in reversed(order):
            coeff = (1.0 + delta[w]) / sigma[w]
            for v in pred[w]:
                delta[v] += sigma[v] * coeff
            if w != s:
                acc[w] += delta[w]

    return acc


def betweenness(
    graph: FrozenGraph,
    workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    normalized: bool = False,
    progress: bool = False,
) -> Dict[str, float]:
    """
    Vertex → betweenness score (>= 0). Raw by default; `normalized`
    divides by (n-1)(n-2)/2, the number of pairs excluding the vertex.
    """
    vertices = graph.vertices
    n = len(vertices)
    if n == 0:
        return {}

    partials = map_source_chunks(
        _brandes_chunk, graph,
        workers=workers, chunk_size=chunk_size,
        desc="  BFS (betweenness)", progress=progress,
    )
    scores = np.zeros(n, dtype=np.float64)
    for acc in partials:
        scores += acc
    scores /= 2.0

    if normalized and n > 2:
        scores /= (n - 1) * (n - 2) / 2.0

    return {v: float(scores[i]) for i, v in enumerate(vertices)}
