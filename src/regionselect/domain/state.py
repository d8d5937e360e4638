"""Selection state enumeration."""

from enum import Enum, auto


class SelectionState(Enum):
    """State of a selection model.

    - NO_SELECTION: Nothing has been selected yet
    - SELECTING: A boundary is being traced but is not yet closed
    - SELECTED: The boundary is a closed loop back to its start point
    - PROCESSING: A background computation is extending the boundary
    """

    NO_SELECTION = auto()
    SELECTING = auto()
    SELECTED = auto()
    PROCESSING = auto()

    def is_empty(self) -> bool:
        """Return whether this state has no selection."""
        return self is SelectionState.NO_SELECTION

    def is_finished(self) -> bool:
        """Return whether this state holds a closed boundary."""
        return self is SelectionState.SELECTED

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()
