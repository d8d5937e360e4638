"""Indexed min-priority queue.

A binary min-heap paired with a dictionary from key to heap position, so the
priority of any queued key can be changed in O(log n) without searching the
heap. This is the frontier structure of the shortest-path search.

The queue is a single-threaded data structure. A search running on a worker
thread owns its own instance.
"""

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

from regionselect.exceptions import EmptyQueueError

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True, slots=True)
class Entry(Generic[K]):
    """Pairs a key with its priority. Replaced wholesale when the priority changes."""

    key: K
    priority: int


class IndexedMinPriorityQueue(Generic[K]):
    """Min-priority queue of distinct keys with mutable integer priorities.

    Invariants:
        - ``_heap[i].priority >= _heap[(i - 1) // 2].priority`` for all ``i >= 1``
        - ``_index[_heap[i].key] == i`` for every position ``i``
        - ``len(_index) == len(_heap)``

    Ties between equal priorities are broken arbitrarily; no ordering among
    equal-priority keys is guaranteed.

    Example:
        queue = IndexedMinPriorityQueue()
        queue.add_or_update("a", 5)
        queue.add_or_update("b", 2)
        queue.remove()  # "b"
    """

    def __init__(self, check_invariants: bool = False) -> None:
        """Create an empty queue.

        Args:
            check_invariants: Verify both invariants after every mutation. The
                check is O(n), so it is meant for tests and debugging only.
        """
        self._heap: list[Entry[K]] = []
        self._index: dict[K, int] = {}
        self._check = check_invariants

    def _check_invariant(self) -> bool:
        """Assert the heap-order and index invariants. Returns True if they hold."""
        for i in range(1, len(self._heap)):
            parent = (i - 1) // 2
            assert self._heap[i].priority >= self._heap[parent].priority, (
                f"heap order violated at {i}"
            )
        for i, entry in enumerate(self._heap):
            assert self._index.get(entry.key) == i, f"index mismatch at {i}"
        assert len(self._index) == len(self._heap)
        return True

    def is_empty(self) -> bool:
        """Return whether this queue contains no elements."""
        return not self._heap

    def size(self) -> int:
        """Return the number of elements in this queue."""
        return len(self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def peek(self) -> K:
        """Return a key with the smallest priority without removing it.

        This is the key ``remove()`` would return next.

        Raises:
            EmptyQueueError: If the queue is empty
        """
        if not self._heap:
            raise EmptyQueueError("peek")
        return self._heap[0].key

    def peek_priority(self) -> int:
        """Return the smallest priority in this queue.

        Raises:
            EmptyQueueError: If the queue is empty
        """
        if not self._heap:
            raise EmptyQueueError("peek priority")
        return self._heap[0].priority

    def add_or_update(self, key: K, priority: int) -> None:
        """Add ``key`` with ``priority``, or change its priority if already queued."""
        if key in self._index:
            self._update(key, priority)
        else:
            self._add(key, priority)
        assert not self._check or self._check_invariant()

    def remove(self) -> K:
        """Remove and return a key with the smallest priority.

        Raises:
            EmptyQueueError: If the queue is empty
        """
        if not self._heap:
            raise EmptyQueueError("remove")

        smallest = self._heap[0].key
        last = self._heap.pop()
        if self._heap:
            self._heap[0] = last
            self._index[last.key] = 0
            self._sift_down(0)
        del self._index[smallest]

        assert not self._check or self._check_invariant()
        return smallest

    def clear(self) -> None:
        """Remove all elements from this queue."""
        self._heap.clear()
        self._index.clear()

    def _add(self, key: K, priority: int) -> None:
        assert key not in self._index
        self._heap.append(Entry(key, priority))
        position = len(self._heap) - 1
        self._index[key] = position
        self._sift_up(position)

    def _update(self, key: K, priority: int) -> None:
        position = self._index[key]
        old_priority = self._heap[position].priority
        self._heap[position] = Entry(key, priority)
        if priority < old_priority:
            self._sift_up(position)
        elif priority > old_priority:
            self._sift_down(position)

    def _swap(self, i: int, j: int) -> None:
        """Swap the entries at ``i`` and ``j``, keeping the index in step."""
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]
        self._index[heap[i].key] = i
        self._index[heap[j].key] = j

    def _sift_up(self, i: int) -> None:
        """Move the entry at ``i`` toward the root while it beats its parent."""
        heap = self._heap
        while i > 0:
            parent = (i - 1) // 2
            if heap[i].priority >= heap[parent].priority:
                break
            self._swap(i, parent)
            i = parent

    def _sift_down(self, i: int) -> None:
        """Move the entry at ``i`` toward the leaves while a child beats it."""
        heap = self._heap
        size = len(heap)
        while True:
            left = 2 * i + 1
            right = left + 1
            lowest = i
            if left < size and heap[left].priority < heap[lowest].priority:
                lowest = left
            if right < size and heap[right].priority < heap[lowest].priority:
                lowest = right
            if lowest == i:
                break
            self._swap(i, lowest)
            i = lowest

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={len(self._heap)})"
