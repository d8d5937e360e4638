"""Unit tests for the selection state machine using the point-to-point tool."""

import pytest
from PIL import Image

from regionselect.config import CostModel, RegionSelectSettings, SelectionConfig
from regionselect.domain import Point, PolyLine, SelectionState
from regionselect.exceptions import InvalidIndexError, InvalidStateError
from regionselect.selection import (
    TOOL_NAMES,
    PointToPointModel,
    ScissorsModel,
    create_model,
)

P0 = Point(0, 0)
P1 = Point(10, 0)
P2 = Point(5, 10)


@pytest.fixture
def model() -> PointToPointModel:
    """Create an empty point-to-point model."""
    return PointToPointModel()


@pytest.fixture
def triangle(model) -> PointToPointModel:
    """Create a model holding the closed triangle P0, P1, P2."""
    model.start(P0)
    model.add_point(P1)
    model.add_point(P2)
    model.finish_selection()
    return model


class RecordingListener:
    """Collects (name, old, new) for every event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object, object]] = []

    def __call__(self, event) -> None:
        self.events.append((event.name, event.old_value, event.new_value))

    def names(self) -> list[str]:
        return [name for name, _, _ in self.events]


class TestInitialState:
    """Tests for a freshly created model."""

    def test_empty(self, model):
        """Test a new model has no selection."""
        assert model.state is SelectionState.NO_SELECTION
        assert model.selection == ()
        assert model.start_point is None
        assert not model.can_undo()

    def test_last_point_without_selection_raises(self, model):
        """Test there is no last point before start."""
        with pytest.raises(InvalidStateError):
            model.last_point()

    def test_repr(self, model):
        """Test repr shows the state."""
        assert "NO_SELECTION" in repr(model)


class TestTracing:
    """Tests for start, add_point and finish_selection."""

    def test_start(self, model):
        """Test start enters SELECTING with no segments."""
        model.start(P0)
        assert model.state is SelectionState.SELECTING
        assert model.selection == ()
        assert model.start_point == P0
        assert model.last_point() == P0

    def test_start_twice_raises(self, model):
        """Test start is only allowed with no selection."""
        model.start(P0)
        with pytest.raises(InvalidStateError, match="SELECTING"):
            model.start(P1)

    def test_add_point_without_selection_starts(self, model):
        """Test add_point on an empty model behaves like start."""
        model.add_point(P0)
        assert model.state is SelectionState.SELECTING
        assert model.start_point == P0
        assert model.selection == ()

    def test_add_points(self, model):
        """Test each added point appends a straight segment."""
        model.start(P0)
        model.add_point(P1)
        model.add_point(P2)
        assert model.selection == (PolyLine(P0, P1), PolyLine(P1, P2))
        assert model.last_point() == P2
        assert model.state is SelectionState.SELECTING

    def test_finish_closes_boundary(self, triangle):
        """Test finishing connects the last point back to the start."""
        assert triangle.state is SelectionState.SELECTED
        assert triangle.selection == (PolyLine(P0, P1), PolyLine(P1, P2), PolyLine(P2, P0))

    def test_finish_without_segments_resets(self, model):
        """Test finishing a boundary with no segments discards it."""
        model.start(P0)
        model.finish_selection()
        assert model.state is SelectionState.NO_SELECTION
        assert model.start_point is None

    def test_finish_without_selection_raises(self, model):
        """Test finishing requires SELECTING."""
        with pytest.raises(InvalidStateError):
            model.finish_selection()

    def test_add_point_after_finish_raises(self, triangle):
        """Test a finished boundary cannot be extended."""
        with pytest.raises(InvalidStateError):
            triangle.add_point(Point(1, 1))
        assert len(triangle.selection) == 3

    def test_cancel_processing_is_noop(self, triangle):
        """Test cancelling does nothing when nothing is processing."""
        triangle.cancel_processing()
        assert triangle.state is SelectionState.SELECTED
        assert len(triangle.selection) == 3


class TestLiveWire:
    """Tests for live_wire previews."""

    def test_preview_is_straight(self, model):
        """Test the preview connects the last point to the cursor."""
        model.start(P0)
        model.add_point(P1)
        assert model.live_wire(P2) == PolyLine(P1, P2)
        assert len(model.selection) == 1

    def test_preview_requires_selecting(self, model, triangle):
        """Test previews are only available while selecting."""
        with pytest.raises(InvalidStateError):
            PointToPointModel().live_wire(P0)
        with pytest.raises(InvalidStateError):
            triangle.live_wire(P0)


class TestUndo:
    """Tests for undo history."""

    def test_undo_reopens_boundary(self, triangle):
        """Test undoing finish returns to SELECTING with the open chain."""
        triangle.undo()
        assert triangle.state is SelectionState.SELECTING
        assert triangle.selection == (PolyLine(P0, P1), PolyLine(P1, P2))

    def test_undo_all_the_way(self, triangle):
        """Test undo walks back to no selection and then does nothing."""
        for expected in (2, 1, 0):
            triangle.undo()
            assert len(triangle.selection) == expected
            assert triangle.state is SelectionState.SELECTING
        triangle.undo()
        assert triangle.state is SelectionState.NO_SELECTION
        assert triangle.start_point is None
        assert not triangle.can_undo()
        triangle.undo()
        assert triangle.state is SelectionState.NO_SELECTION

    def test_failed_operation_leaves_history(self, triangle):
        """Test rejected operations do not push snapshots."""
        depth = triangle.history_depth
        with pytest.raises(InvalidStateError):
            triangle.add_point(P0)
        assert triangle.history_depth == depth

    def test_failed_append_keeps_full_history(self, monkeypatch):
        """Test a failing append does not lose the oldest snapshot of a full history."""
        settings = RegionSelectSettings(selection=SelectionConfig(history_limit=2))
        model = PointToPointModel(settings=settings)
        model.start(P0)
        model.add_point(P1)
        assert model.history_depth == 2

        def fail(p):
            raise RuntimeError("append failed")

        monkeypatch.setattr(model, "_append_to_selection", fail)
        with pytest.raises(RuntimeError):
            model.add_point(P2)
        assert model.history_depth == 2
        assert model.selection == (PolyLine(P0, P1),)

        model.undo()
        model.undo()
        assert model.state is SelectionState.NO_SELECTION

    def test_history_limit(self):
        """Test the oldest snapshots are dropped beyond the limit."""
        settings = RegionSelectSettings(selection=SelectionConfig(history_limit=2))
        model = PointToPointModel(settings=settings)
        model.start(P0)
        model.add_point(P1)
        model.add_point(P2)
        assert model.history_depth == 2
        model.undo()
        model.undo()
        assert model.state is SelectionState.SELECTING
        assert model.selection == ()
        model.undo()
        assert model.start_point == P0


class TestReset:
    """Tests for reset."""

    def test_reset_clears_everything(self, triangle):
        """Test reset discards the selection and history."""
        triangle.reset()
        assert triangle.state is SelectionState.NO_SELECTION
        assert triangle.selection == ()
        assert triangle.start_point is None
        assert triangle.history_depth == 0

    def test_reset_empty_model(self, model):
        """Test reset on an empty model is harmless."""
        model.reset()
        assert model.state is SelectionState.NO_SELECTION

    def test_set_image_resets(self, triangle):
        """Test changing the image discards the selection."""
        image = Image.new("RGB", (4, 4))
        triangle.set_image(image)
        assert triangle.image is image
        assert triangle.state is SelectionState.NO_SELECTION


class TestMovePoint:
    """Tests for relocating control points of a finished boundary."""

    def test_move_start_point(self, triangle):
        """Test moving point 0 rewrites the first and last segments."""
        new_p = Point(-3, -4)
        triangle.move_point(0, new_p)
        assert triangle.selection == (
            PolyLine(new_p, P1),
            PolyLine(P1, P2),
            PolyLine(P2, new_p),
        )
        assert triangle.start_point == new_p
        assert triangle.state is SelectionState.SELECTED

    def test_move_middle_point(self, triangle):
        """Test moving point 1 rewrites the segments on either side."""
        new_p = Point(12, 3)
        triangle.move_point(1, new_p)
        assert triangle.selection == (
            PolyLine(P0, new_p),
            PolyLine(new_p, P2),
            PolyLine(P2, P0),
        )
        assert triangle.start_point == P0

    def test_move_is_undoable(self, triangle):
        """Test undo restores the boundary before the move."""
        before = triangle.selection
        triangle.move_point(2, Point(1, 1))
        triangle.undo()
        assert triangle.selection == before
        assert triangle.state is SelectionState.SELECTED

    def test_move_requires_selected(self, model):
        """Test points can only be moved on a finished boundary."""
        model.start(P0)
        model.add_point(P1)
        with pytest.raises(InvalidStateError):
            model.move_point(0, P2)

    @pytest.mark.parametrize("index", [3, 4, -1])
    def test_move_invalid_index(self, triangle, index):
        """Test out-of-range indices are rejected without changes."""
        before = triangle.selection
        with pytest.raises(InvalidIndexError):
            triangle.move_point(index, P2)
        assert triangle.selection == before


class TestControlPoints:
    """Tests for control point queries."""

    def test_control_points(self, triangle):
        """Test control points are segment starts in order."""
        assert triangle.control_points() == (P0, P1, P2)

    def test_closest_point(self, triangle):
        """Test the nearest control point within range is found."""
        assert triangle.closest_point(Point(9, 1), 25) == 1
        assert triangle.closest_point(Point(5, 9), 1) == 2

    def test_closest_point_out_of_range(self, triangle):
        """Test None is returned when nothing is close enough."""
        assert triangle.closest_point(Point(30, 30), 25) is None

    def test_closest_point_tie_prefers_lowest_index(self, triangle):
        """Test equidistant control points resolve to the first."""
        assert triangle.closest_point(Point(5, 0), 100) == 0


class TestNotifications:
    """Tests for state and selection events."""

    def test_state_events(self, model):
        """Test each state change is published once with old and new values."""
        listener = RecordingListener()
        model.subscribe("state", listener)
        model.start(P0)
        model.add_point(P1)
        model.finish_selection()
        assert listener.events == [
            ("state", SelectionState.NO_SELECTION, SelectionState.SELECTING),
            ("state", SelectionState.SELECTING, SelectionState.SELECTED),
        ]

    def test_selection_events(self, model):
        """Test selection events carry the new boundary."""
        listener = RecordingListener()
        model.subscribe("selection", listener)
        model.start(P0)
        model.add_point(P1)
        assert listener.events == [("selection", None, (PolyLine(P0, P1),))]

    def test_wildcard_and_unsubscribe(self, model):
        """Test a wildcard listener sees every event until removed."""
        listener = RecordingListener()
        model.subscribe(None, listener)
        model.start(P0)
        model.add_point(P1)
        assert listener.names() == ["state", "selection"]
        model.unsubscribe(None, listener)
        model.reset()
        assert listener.names() == ["state", "selection"]

    def test_reset_publishes(self, triangle):
        """Test reset announces the empty selection and state."""
        listener = RecordingListener()
        triangle.subscribe(None, listener)
        triangle.reset()
        assert listener.events == [
            ("selection", None, ()),
            ("state", SelectionState.SELECTED, SelectionState.NO_SELECTION),
        ]


class TestCopyAndFactory:
    """Tests for copy_of and create_model."""

    def test_copy_of(self, triangle):
        """Test copies carry selection, state and history."""
        copy = PointToPointModel.copy_of(triangle)
        assert copy.selection == triangle.selection
        assert copy.state is SelectionState.SELECTED
        assert copy.history_depth == triangle.history_depth
        copy.undo()
        assert copy.state is SelectionState.SELECTING
        assert triangle.state is SelectionState.SELECTED

    def test_copy_does_not_share_listeners(self, triangle):
        """Test listeners stay with the original model."""
        listener = RecordingListener()
        triangle.subscribe(None, listener)
        copy = PointToPointModel.copy_of(triangle)
        copy.reset()
        assert listener.events == []

    def test_create_model_tools(self):
        """Test every tool name builds a model."""
        for tool in TOOL_NAMES:
            model = create_model(tool)
            assert model.tool_name == tool
            model.close()

    def test_create_model_unknown(self):
        """Test unknown tool names are rejected."""
        with pytest.raises(ValueError, match="Unknown selection tool"):
            create_model("lasso")

    def test_switch_tool_keeps_selection(self, triangle):
        """Test switching tools carries the boundary over."""
        triangle.set_image(Image.new("RGB", (20, 20)))
        triangle.start(P0)
        triangle.add_point(P1)
        scissors = create_model("scissors-color", previous=triangle)
        assert isinstance(scissors, ScissorsModel)
        assert scissors.cost_model is CostModel.COLOR
        assert scissors.selection == (PolyLine(P0, P1),)
        assert scissors.state is SelectionState.SELECTING
        assert scissors.image is triangle.image
        scissors.close()
