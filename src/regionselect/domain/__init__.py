"""Domain models for regionselect.

This module contains the geometric types that make up a selection boundary.
All models are immutable (frozen dataclasses) so that selection snapshots can be
shared between the model, its undo history and observers without copying.

Key classes:
- Point: An integer pixel position
- PolyLine: One boundary segment between two points
- SelectionState: The states of the selection state machine
"""

from regionselect.domain.geometry import Point, PolyLine
from regionselect.domain.state import SelectionState

__all__: list[str] = [
    # Enums
    "SelectionState",
    # Core types
    "Point",
    "PolyLine",
]
