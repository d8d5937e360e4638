"""Exception hierarchy for Regionselect."""


class RegionSelectError(Exception):
    """Base exception for all Regionselect errors."""

    pass


class QueueError(RegionSelectError):
    """Errors related to priority queue operations."""

    pass


class EmptyQueueError(QueueError):
    """Query or removal on a queue with no elements."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Cannot {operation} from an empty queue")


class SelectionError(RegionSelectError):
    """Errors related to the selection state machine."""

    pass


class InvalidStateError(SelectionError):
    """Operation invoked in a state that forbids it."""

    def __init__(self, operation: str, state: object) -> None:
        self.operation = operation
        self.state = state
        name = getattr(state, "name", state)
        super().__init__(f"May not {operation} in state {name}")


class InvalidIndexError(SelectionError):
    """Segment index out of bounds."""

    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(f"Invalid segment index {index} (selection has {size} segments)")


class SearchAbortedError(RegionSelectError):
    """Path search was cancelled before it finished.

    Not a user-facing error: the model reverts to its last committed state.
    """

    def __init__(self, settled: int) -> None:
        self.settled = settled
        super().__init__(f"Path search aborted after settling {settled} vertices")


class ExportError(RegionSelectError):
    """Error writing the selected region to a sink."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to export selection: {reason}")


class ImageLoadError(RegionSelectError):
    """Error loading an image file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load image '{path}': {reason}")
