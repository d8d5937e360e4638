"""Graph search primitives for regionselect.

This module contains the building blocks of the intelligent scissors tool:

- IndexedMinPriorityQueue: Binary heap with a key index for O(log n) updates
- ShortestPaths: Incremental Dijkstra search over any Graph
- ImageGraph: 8-connected pixel graph with gradient-based edge weights

All classes are single-threaded. A search that runs on a worker thread owns
every object it touches.
"""

from regionselect.graph.image_graph import ImageGraph, gradient_magnitude, image_to_array
from regionselect.graph.min_queue import Entry, IndexedMinPriorityQueue
from regionselect.graph.shortest_paths import CancellationToken, Graph, ShortestPaths

__all__ = [
    "CancellationToken",
    "Entry",
    "Graph",
    "ImageGraph",
    "IndexedMinPriorityQueue",
    "ShortestPaths",
    "gradient_magnitude",
    "image_to_array",
]
