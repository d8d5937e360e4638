"""Selection state machine shared by every selection tool.

A selection model accumulates a boundary as a chain of PolyLine segments that
starts at ``start_point``. Concrete tools decide how a clicked point becomes
segments by implementing ``live_wire`` and ``_append_to_selection``; the state
transitions, undo history, point relocation, export and notifications live
here.

States:
- NO_SELECTION --start/add_point--> SELECTING
- SELECTING --add_point--> SELECTING (possibly through PROCESSING)
- SELECTING --finish_selection--> SELECTED (possibly through PROCESSING)
- PROCESSING --cancel_processing--> last committed state
- any --undo--> previous snapshot, any --reset--> NO_SELECTION
"""

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, BinaryIO, ClassVar, TypeVar

import structlog
from PIL import Image

from regionselect.config import RegionSelectSettings, get_default_settings
from regionselect.domain import Point, PolyLine, SelectionState
from regionselect.exceptions import ExportError, InvalidIndexError, InvalidStateError
from regionselect.io.export import write_region
from regionselect.selection.events import Dispatcher, EventBus, Listener
from regionselect.utils import SelectionLogger

NO_SELECTION = SelectionState.NO_SELECTION
SELECTING = SelectionState.SELECTING
SELECTED = SelectionState.SELECTED
PROCESSING = SelectionState.PROCESSING

ModelT = TypeVar("ModelT", bound="SelectionModel")


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Immutable record of a model's committed state, kept for undo."""

    selection: tuple[PolyLine, ...]
    start: Point | None
    state: SelectionState


class SelectionModel(ABC):
    """Abstract selection tool.

    Mutating operations must be called from the thread that created the model.
    Observers subscribe to the "state", "selection" and "progress" properties.

    Example:
        model = PointToPointModel()
        model.subscribe("state", on_state)
        model.start(Point(0, 0))
        model.add_point(Point(10, 0))
        model.finish_selection()
    """

    tool_name: ClassVar[str] = "selection"

    def __init__(
        self,
        notify_on_ui_thread: bool | None = None,
        *,
        settings: RegionSelectSettings | None = None,
        image: Image.Image | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Create a model with no selection.

        Args:
            notify_on_ui_thread: Deliver events published by worker threads on
                the creating thread (defaults to the settings value)
            settings: Application settings (defaults if None)
            image: Image the boundary is traced over
            dispatcher: Callable that runs a callback on the creating thread;
                without one, posted events wait for ``process_pending_events()``
        """
        self.settings = settings if settings is not None else get_default_settings()
        if notify_on_ui_thread is None:
            notify_on_ui_thread = self.settings.selection.notify_on_ui_thread

        self._selection: list[PolyLine] = []
        self._start: Point | None = None
        self._state = NO_SELECTION
        self._history: deque[Snapshot] = deque(maxlen=self.settings.selection.history_limit)
        # Oldest snapshot pushed out of a full history by the pending edit
        self._evicted: Snapshot | None = None
        self._image = image
        # State entered once the append in progress commits
        self._target_state = SELECTING
        self._events = EventBus(
            source=self, post_foreign=notify_on_ui_thread, dispatcher=dispatcher
        )
        self._log = SelectionLogger(structlog.get_logger(__name__), self.tool_name)

    @classmethod
    def copy_of(cls: type[ModelT], other: "SelectionModel", **kwargs: Any) -> ModelT:
        """Create a model of this tool seeded from another model of any tool.

        The new model takes over the committed selection, start point, state,
        undo history, image and event delivery mode. Listeners are not copied.
        A computation still running in ``other`` is not carried over; the copy
        starts from ``other``'s last committed state.

        Args:
            other: Model to copy
            **kwargs: Extra constructor arguments for this tool

        Returns:
            New model
        """
        model = cls(
            notify_on_ui_thread=other._events.post_foreign,
            settings=other.settings,
            image=other._image,
            dispatcher=other._events.dispatcher,
            **kwargs,
        )
        history = list(other._history)
        if other._state is PROCESSING:
            committed = history.pop()
            if other._evicted is not None:
                history.insert(0, other._evicted)
        else:
            committed = other._snapshot()
        model._selection = list(committed.selection)
        model._start = committed.start
        model._state = committed.state
        model._history.extend(history)
        assert model._check_invariant()
        return model

    # Observers

    def subscribe(self, name: str | None, listener: Listener) -> None:
        """Listen for changes of property ``name`` (None for all properties)."""
        self._events.subscribe(name, listener)

    def unsubscribe(self, name: str | None, listener: Listener) -> None:
        """Stop listening for changes of property ``name``."""
        self._events.unsubscribe(name, listener)

    def process_pending_events(self) -> int:
        """Deliver events posted from worker threads. Call from the owning thread.

        Returns:
            Number of events delivered
        """
        return self._events.process_pending()

    # Queries

    @property
    def state(self) -> SelectionState:
        """Current selection state."""
        return self._state

    @property
    def selection(self) -> tuple[PolyLine, ...]:
        """Snapshot of the current boundary segments."""
        return tuple(self._selection)

    @property
    def start_point(self) -> Point | None:
        """First point of the boundary, or None with no selection."""
        return self._start

    @property
    def image(self) -> Image.Image | None:
        """Image the boundary is traced over."""
        return self._image

    @property
    def history_depth(self) -> int:
        """Number of snapshots available to ``undo()``."""
        return len(self._history)

    def can_undo(self) -> bool:
        """Return whether ``undo()`` would change anything."""
        return self._state is not PROCESSING and bool(self._history)

    def last_point(self) -> Point:
        """Return the end of the boundary traced so far.

        Raises:
            InvalidStateError: If there is no selection
        """
        if self._start is None:
            raise InvalidStateError("query the last point", self._state)
        if not self._selection:
            return self._start
        return self._selection[-1].end

    def control_points(self) -> tuple[Point, ...]:
        """Return the start point of every segment, in boundary order."""
        return tuple(segment.start for segment in self._selection)

    def closest_point(self, p: Point, max_distance_sq: int) -> int | None:
        """Return the index of the control point nearest to ``p``.

        Only points within ``sqrt(max_distance_sq)`` of ``p`` qualify; ties go to
        the lowest index. The index can be passed to ``move_point``.

        Returns:
            Segment index, or None if no control point is close enough
        """
        best: int | None = None
        best_distance = max_distance_sq
        for i, point in enumerate(self.control_points()):
            distance = point.distance_sq(p)
            if distance < best_distance or (distance == best_distance and best is None):
                best = i
                best_distance = distance
        return best

    # Tool extension points

    @abstractmethod
    def live_wire(self, p: Point) -> PolyLine:
        """Return the segment ``add_point(p)`` would append, without appending it.

        Raises:
            InvalidStateError: If the model is not SELECTING
        """

    @abstractmethod
    def _append_to_selection(self, p: Point) -> None:
        """Extend the boundary from ``last_point()`` to ``p``.

        Implementations either call ``_commit`` right away or enter PROCESSING
        and call it once a background computation finishes.
        """

    def _export_segments(self) -> Sequence[PolyLine]:
        """Return the boundary used to build the export mask."""
        return self._selection

    # Operations

    def set_image(self, image: Image.Image | None) -> None:
        """Trace over ``image`` from now on. Clears the current selection."""
        self._image = image
        self.reset()

    def start(self, p: Point) -> None:
        """Start a new boundary at ``p``.

        Raises:
            InvalidStateError: If a selection already exists
        """
        if self._state is not NO_SELECTION:
            raise InvalidStateError("start a selection", self._state)
        self._push_history()
        self._start = p
        self._log.log_point_added(p.to_tuple(), 0)
        self._set_state(SELECTING)
        assert self._check_invariant()

    def add_point(self, p: Point) -> None:
        """Extend the boundary to ``p``, or start one there if none exists.

        Raises:
            InvalidStateError: If the selection is finished or processing
        """
        if self._state is NO_SELECTION:
            self.start(p)
            return
        if self._state is not SELECTING:
            raise InvalidStateError("add a point", self._state)
        self._extend(p, SELECTING)

    def finish_selection(self) -> None:
        """Close the boundary back to its start point.

        A boundary with no segments is discarded instead.

        Raises:
            InvalidStateError: If the model is not SELECTING
        """
        if self._state is not SELECTING:
            raise InvalidStateError("finish the selection", self._state)
        if not self._selection:
            self.reset()
            return
        assert self._start is not None
        self._extend(self._start, SELECTED)

    def undo(self) -> None:
        """Restore the state before the most recent edit.

        Does nothing when there is no history.

        Raises:
            InvalidStateError: If a computation is in progress
        """
        if self._state is PROCESSING:
            raise InvalidStateError("undo", self._state)
        if not self._history:
            return
        self._restore(self._history.pop())

    def reset(self) -> None:
        """Discard the selection and the whole undo history.

        A computation in progress is cancelled first.
        """
        self.cancel_processing()
        self._history.clear()
        had_segments = bool(self._selection)
        self._selection.clear()
        self._start = None
        if had_segments:
            self._events.publish("selection", None, self.selection)
        self._set_state(NO_SELECTION)
        assert self._check_invariant()

    def cancel_processing(self) -> None:
        """Abort the computation in progress and revert to the committed state.

        Does nothing unless the model is PROCESSING.
        """
        if self._state is not PROCESSING:
            return
        self._abort_processing()
        self._restore(self._discard_pending_snapshot())

    def move_point(self, index: int, new_pos: Point) -> None:
        """Move the control point at ``index`` of a closed boundary to ``new_pos``.

        The control point at ``index`` is where segment ``index - 1`` ends and
        segment ``index`` starts (cyclically). Both segments are replaced by
        straight segments through ``new_pos``. Moving point 0 also moves the
        start point and rewrites the last segment.

        Raises:
            InvalidStateError: If the selection is not finished
            InvalidIndexError: If ``index`` is not a segment index
        """
        if not self._state.is_finished():
            raise InvalidStateError("move a point", self._state)
        if index < 0 or index >= len(self._selection):
            raise InvalidIndexError(index, len(self._selection))

        self._push_history()
        previous = index - 1 if index > 0 else len(self._selection) - 1
        before = self._selection[previous]
        after = self._selection[index]
        self._selection[previous] = PolyLine(before.start, new_pos)
        self._selection[index] = PolyLine(new_pos, after.end)
        if index == 0:
            self._start = new_pos

        assert self._check_invariant()
        self._events.publish("selection", None, self.selection)

    def save_selection(self, sink: BinaryIO) -> None:
        """Write the enclosed region of the image to ``sink``.

        Raises:
            InvalidStateError: If the selection is not finished
            ExportError: If there is no image or the sink cannot be written
        """
        if not self._state.is_finished():
            raise InvalidStateError("save the selection", self._state)
        if self._image is None:
            raise ExportError("no image to export from")

        image_format = self.settings.export.image_format
        try:
            region = write_region(self._image, self._export_segments(), sink, image_format)
        except ExportError as e:
            self._log.log_export_error(e)
            raise
        self._log.log_export(region.size, image_format)

    def close(self) -> None:
        """Release background resources. The model stays usable."""
        self.cancel_processing()

    # Internals

    def _abort_processing(self) -> None:
        """Stop the computation in progress. Tools with workers override this."""

    def _extend(self, p: Point, target_state: SelectionState) -> None:
        self._push_history()
        self._target_state = target_state
        try:
            self._append_to_selection(p)
        except Exception:
            self._discard_pending_snapshot()
            raise

    def _commit(self, segments: Sequence[PolyLine]) -> None:
        """Append finished segments and enter the pending target state."""
        self._evicted = None
        self._selection.extend(segments)
        if segments:
            self._log.log_point_added(segments[-1].end.to_tuple(), len(self._selection))
        self._events.publish("selection", None, self.selection)
        self._set_state(self._target_state)
        assert self._check_invariant()

    def _snapshot(self) -> Snapshot:
        return Snapshot(tuple(self._selection), self._start, self._state)

    def _push_history(self) -> None:
        history = self._history
        full = history.maxlen is not None and len(history) == history.maxlen
        self._evicted = history[0] if full else None
        history.append(self._snapshot())

    def _discard_pending_snapshot(self) -> Snapshot:
        """Pop the snapshot pushed for an edit that did not commit.

        A snapshot evicted by that push returns to the bottom of the history.
        """
        snapshot = self._history.pop()
        if self._evicted is not None:
            self._history.appendleft(self._evicted)
            self._evicted = None
        return snapshot

    def _restore(self, snapshot: Snapshot) -> None:
        changed = tuple(self._selection) != snapshot.selection
        self._selection = list(snapshot.selection)
        self._start = snapshot.start
        if changed:
            self._events.publish("selection", None, self.selection)
        self._set_state(snapshot.state)
        assert self._check_invariant()

    def _set_state(self, state: SelectionState) -> None:
        old = self._state
        if old is state:
            return
        self._state = state
        self._log.log_state_change(old, state)
        self._events.publish("state", old, state)

    def _check_invariant(self) -> bool:
        """Assert the boundary is consistent with the state. Returns True if it is."""
        if self._state is NO_SELECTION:
            assert not self._selection, "segments without a selection"
            assert self._start is None, "start point without a selection"
            return True

        assert self._start is not None, f"no start point in state {self._state.name}"
        expected = self._start
        for i, segment in enumerate(self._selection):
            assert segment.start == expected, f"segment {i} is disconnected"
            expected = segment.end
        if self._state.is_finished():
            assert self._selection, "closed selection without segments"
            assert expected == self._start, "closed selection does not return to start"
        return True

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(state={self._state.name}, "
            f"segments={len(self._selection)})"
        )
