"""Selection models for regionselect.

This module contains the interactive boundary-selection engine:

- SelectionModel: State machine with undo history, point relocation and export
- PointToPointModel: Connects points with straight segments
- ScissorsModel: Connects points along the cheapest path through the image
- EventBus / PropertyChange: Property-change notifications for observers

Key functions:
- create_model: Build a model for a tool name, optionally seeded from another model
"""

from typing import Any

from regionselect.config import CostModel
from regionselect.selection.events import EventBus, PropertyChange
from regionselect.selection.model import SelectionModel, Snapshot
from regionselect.selection.point_to_point import PointToPointModel
from regionselect.selection.scissors import ScissorsModel

TOOL_NAMES: tuple[str, ...] = ("point-to-point", "scissors-gray", "scissors-color")


def create_model(
    tool: str, previous: SelectionModel | None = None, **kwargs: Any
) -> SelectionModel:
    """Create the selection model for ``tool``.

    Args:
        tool: One of TOOL_NAMES
        previous: Model whose selection and history carry over, if any
        **kwargs: Constructor arguments used when ``previous`` is None

    Returns:
        New selection model

    Raises:
        ValueError: If ``tool`` is unknown
    """
    if tool == "point-to-point":
        if previous is not None:
            return PointToPointModel.copy_of(previous)
        return PointToPointModel(**kwargs)
    if tool in ("scissors-gray", "scissors-color"):
        cost_model = CostModel(tool.removeprefix("scissors-"))
        if previous is not None:
            return ScissorsModel.copy_of(previous, cost_model=cost_model)
        return ScissorsModel(cost_model=cost_model, **kwargs)
    raise ValueError(f"Unknown selection tool '{tool}' (expected one of {', '.join(TOOL_NAMES)})")


__all__ = [
    "TOOL_NAMES",
    "EventBus",
    "PointToPointModel",
    "PropertyChange",
    "ScissorsModel",
    "SelectionModel",
    "Snapshot",
    "create_model",
]
