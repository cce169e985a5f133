"""
Per-source work distribution for the BFS-based analytics.

Sources are split into fixed-size index ranges ("chunks"). Each chunk
is processed by a module-level function `fn(graph, start, stop)` that
returns a local accumulator; results come back in chunk order whatever
the number of workers, so callers can merge them reproducibly.
"""

from concurrent.futures import ProcessPoolExecutor
from typing import Callable, List, Optional, TypeVar

from tqdm.auto import tqdm

from graph_store import FrozenGraph

T = TypeVar("T")

DEFAULT_CHUNK_SIZE = 256

# Graph shipped once per worker process via the pool initializer
_WORKER_GRAPH: Optional[FrozenGraph] = None


def _init_worker(graph: FrozenGraph):
    global _WORKER_GRAPH
    _WORKER_GRAPH = graph


def _run_chunk(fn, start: int, stop: int):
    return fn(_WORKER_GRAPH, start, stop)


def source_chunks(n: int, chunk_size: int):
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return [(s, min(s + chunk_size, n)) for s in range(0, n, chunk_size)]


def map_source_chunks(
    fn: Callable[[FrozenGraph, int, int], T],
    graph: FrozenGraph,
    workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    desc: str = "  Sources",
    progress: bool = False,
) -> List[T]:
    """Apply `fn` to every source chunk of `graph`; results in chunk order."""
    chunks = source_chunks(graph.vertex_count(), chunk_size)
    results: List[T] = []

    with tqdm(total=len(chunks), desc=desc, disable=not progress) as pbar:
        if workers <= 1 or len(chunks) <= 1:
            for start, stop in chunks:
                results.append(fn(graph, start, stop))
                pbar.update(1)
            return results

        with ProcessPoolExecutor(
            max_workers=workers,
            initializer=_init_worker,
            initargs=(graph,),
        ) as executor:
            futures = [executor.submit(_run_chunk, fn, start, stop) for start, stop in chunks]
            # Collect in submission order, not completion order
            for future in futures:
                results.append(future.result())
                pbar.update(1)

    return results
