"""Single-source shortest paths over a weighted graph.

The search is Dijkstra's algorithm with an IndexedMinPriorityQueue frontier.
It is incremental: vertices are settled on demand, so asking for the path to a
nearby vertex only explores as far as that vertex, and later queries resume
where the previous one stopped.

Key components:
- Graph: Protocol the searched graph must satisfy
- CancellationToken: Cooperative cancellation flag shared with a worker
- ShortestPaths: The incremental search
"""

import threading
from collections.abc import Callable, Hashable, Iterable
from typing import Generic, Protocol, TypeVar

from regionselect.exceptions import SearchAbortedError
from regionselect.graph.min_queue import IndexedMinPriorityQueue

V = TypeVar("V", bound=Hashable)


class Graph(Protocol[V]):
    """A directed graph with non-negative integer edge weights."""

    def vertex_count(self) -> int:
        """Return the number of vertices in the graph."""
        ...

    def neighbors(self, vertex: V) -> Iterable[tuple[V, int]]:
        """Yield ``(neighbor, weight)`` for every outgoing edge of ``vertex``."""
        ...


class CancellationToken:
    """Cooperative cancellation flag.

    The owner calls ``cancel()``; the worker polls ``cancelled`` at loop
    boundaries and stops without touching committed state once it is set.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def raise_if_cancelled(self, settled: int) -> None:
        """Raise SearchAbortedError if cancellation has been requested."""
        if self._event.is_set():
            raise SearchAbortedError(settled)


class ShortestPaths(Generic[V]):
    """Incremental Dijkstra search from a single source vertex.

    Example:
        paths = ShortestPaths(graph, source)
        route = paths.path_to(target)
        cost = paths.distance_to(target)

    Attributes:
        source: The vertex every path starts from
    """

    def __init__(
        self,
        graph: Graph[V],
        source: V,
        token: CancellationToken | None = None,
        check_interval: int = 1024,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> None:
        """Initialize a search rooted at ``source``.

        Args:
            graph: Graph to search
            source: Start vertex
            token: Optional cancellation token polled while settling vertices
            check_interval: Number of settled vertices between token polls and
                progress callbacks
            progress_callback: Optional callback(settled, total)
        """
        self.source = source
        self._graph = graph
        self._token = token
        self._check_interval = max(1, check_interval)
        self._progress_callback = progress_callback

        self._frontier: IndexedMinPriorityQueue[V] = IndexedMinPriorityQueue()
        self._distances: dict[V, int] = {source: 0}
        self._predecessors: dict[V, V] = {}
        self._settled: set[V] = set()
        self._frontier.add_or_update(source, 0)

    @property
    def settled_count(self) -> int:
        """Number of vertices whose shortest distance is final."""
        return len(self._settled)

    def _settle_next(self) -> V:
        vertex = self._frontier.remove()
        self._settled.add(vertex)
        base = self._distances[vertex]
        for neighbor, weight in self._graph.neighbors(vertex):
            if neighbor in self._settled:
                continue
            candidate = base + weight
            known = self._distances.get(neighbor)
            if known is None or candidate < known:
                self._distances[neighbor] = candidate
                self._predecessors[neighbor] = vertex
                self._frontier.add_or_update(neighbor, candidate)
        return vertex

    def settle_until(self, target: V | None = None) -> bool:
        """Settle vertices until ``target`` is settled or the frontier is empty.

        Passing None settles every reachable vertex.

        Returns:
            True if ``target`` is settled (always True for None)

        Raises:
            SearchAbortedError: If the cancellation token was triggered
        """
        total = self._graph.vertex_count()
        while target is None or target not in self._settled:
            if self._frontier.is_empty():
                return target is None
            self._settle_next()
            settled = len(self._settled)
            if settled % self._check_interval == 0:
                if self._token is not None:
                    self._token.raise_if_cancelled(settled)
                if self._progress_callback is not None:
                    self._progress_callback(settled, total)
        return True

    def distance_to(self, target: V) -> int:
        """Return the cost of the cheapest path to ``target``.

        Raises:
            KeyError: If ``target`` is unreachable from the source
        """
        if not self.settle_until(target):
            raise KeyError(target)
        return self._distances[target]

    def path_to(self, target: V) -> list[V]:
        """Return the cheapest path from the source to ``target``, inclusive.

        Raises:
            KeyError: If ``target`` is unreachable from the source
        """
        if not self.settle_until(target):
            raise KeyError(target)
        path = [target]
        while path[-1] != self.source:
            path.append(self._predecessors[path[-1]])
        path.reverse()
        return path
