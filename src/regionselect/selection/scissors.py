"""Intelligent scissors selection tool.

Each added point is connected to the previous one by the cheapest path through
an ImageGraph, so the boundary snaps to edges in the image. The search runs on
a worker thread while the model is PROCESSING:

- the worker owns its graph search and priority queue;
- progress and the result travel back over a private event bus tagged with
  the search's cancellation token; progress is re-published as the
  "progress" property (0-100) and the result committed only while that token
  is still current;
- ``cancel_processing()`` sets the token, and the worker stops at its next
  check without touching the selection.
"""

import threading
import time
import traceback
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Any

from PIL import Image

from regionselect.config import CostModel, RegionSelectSettings, get_default_settings
from regionselect.domain import Point, PolyLine
from regionselect.exceptions import InvalidStateError, SearchAbortedError
from regionselect.graph import CancellationToken, ImageGraph, ShortestPaths
from regionselect.selection.events import Dispatcher, EventBus, PropertyChange
from regionselect.selection.model import PROCESSING, SELECTING, SelectionModel
from regionselect.utils import SearchStats

_SEARCH_DONE = "search-done"
_SEARCH_PROGRESS = "search-progress"


class ScissorsModel(SelectionModel):
    """Selection tool that follows the cheapest path between points.

    Example:
        model = ScissorsModel(image=img, cost_model=CostModel.COLOR)
        model.start(Point(5, 5))
        model.add_point(Point(40, 12))   # enters PROCESSING
        model.wait_for_processing()      # back to SELECTING
    """

    def __init__(
        self,
        notify_on_ui_thread: bool | None = None,
        *,
        cost_model: CostModel | None = None,
        settings: RegionSelectSettings | None = None,
        image: Image.Image | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Create a scissors model with no selection.

        Args:
            notify_on_ui_thread: See SelectionModel
            cost_model: Edge cost model (defaults to the settings value)
            settings: Application settings (defaults if None)
            image: Image the boundary is traced over
            dispatcher: See SelectionModel
        """
        resolved = settings if settings is not None else get_default_settings()
        self.cost_model = cost_model if cost_model is not None else resolved.scissors.cost_model
        super().__init__(
            notify_on_ui_thread, settings=resolved, image=image, dispatcher=dispatcher
        )
        self._graph: ImageGraph | None = None
        self._preview: ShortestPaths[int] | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._future: Future[None] | None = None
        self._token: CancellationToken | None = None
        self._token_lock = threading.RLock()
        self._results = EventBus(
            source=self, post_foreign=self._events.post_foreign, dispatcher=dispatcher
        )
        self._results.subscribe(_SEARCH_DONE, self._on_search_done)
        self._results.subscribe(_SEARCH_PROGRESS, self._on_search_progress)

    @property
    def tool_name(self) -> str:  # type: ignore[override]
        """Tool name including the cost model."""
        return f"scissors-{self.cost_model.value}"

    def set_image(self, image: Image.Image | None) -> None:
        """Trace over ``image`` from now on. Clears the selection and cached graph."""
        self.cancel_processing()
        self._graph = None
        self._preview = None
        super().set_image(image)

    def start(self, p: Point) -> None:
        """Start a new boundary at ``p``, which must lie inside the image.

        Raises:
            InvalidStateError: If a selection exists or no image is set
            ValueError: If ``p`` is outside the image
        """
        if self._state.is_empty():
            graph = self._require_graph()
            graph.vertex_at(p)
        super().start(p)

    def live_wire(self, p: Point) -> PolyLine:
        """Return the cheapest path from our last point to ``p``.

        The search from the last point is kept between calls and expanded only
        as far as needed, so moving the cursor around stays cheap.

        Raises:
            InvalidStateError: If the model is not SELECTING or has no image
            ValueError: If ``p`` is outside the image
        """
        if self._state is not SELECTING:
            raise InvalidStateError("preview a live wire", self._state)
        graph = self._require_graph()
        source = graph.vertex_at(self.last_point())
        target = graph.vertex_at(p)
        if self._preview is None or self._preview.source != source:
            self._preview = ShortestPaths(graph, source)
        return PolyLine.from_points([graph.point_of(v) for v in self._preview.path_to(target)])

    def cancel_processing(self) -> None:
        """Abort the running search and revert to the committed state.

        Does nothing unless the model is PROCESSING.
        """
        with self._token_lock:
            super().cancel_processing()

    def wait_for_processing(self, timeout: float | None = None) -> bool:
        """Block until the current search finishes, then deliver its events.

        Must be called from the thread that created the model.

        Args:
            timeout: Maximum seconds to wait (None = no limit)

        Returns:
            True if the model is no longer PROCESSING
        """
        future = self._future
        if future is not None:
            wait_futures([future], timeout=timeout)
        if self._events.is_owner_thread():
            self._events.process_pending()
            self._results.process_pending()
        return self._state is not PROCESSING

    def process_pending_events(self) -> int:
        """Deliver posted progress events and search results."""
        return self._events.process_pending() + self._results.process_pending()

    def close(self) -> None:
        """Cancel any search and shut down the worker thread."""
        super().close()
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "ScissorsModel":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _require_graph(self) -> ImageGraph:
        if self._image is None:
            raise InvalidStateError("trace a path without an image", self._state)
        if self._graph is None:
            scissors = self.settings.scissors
            self._graph = ImageGraph.from_image(self._image, self.cost_model, scissors.edge_scale)
        return self._graph

    def _append_to_selection(self, p: Point) -> None:
        graph = self._require_graph()
        source = self.last_point()
        graph.vertex_at(p)

        token = CancellationToken()
        with self._token_lock:
            self._token = token
        self._set_state(PROCESSING)
        self._events.publish("progress", None, 0)

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scissors")
        self._log.log_search_start(source.to_tuple(), p.to_tuple())
        self._future = self._executor.submit(self._search, graph, source, p, token)

    def _abort_processing(self) -> None:
        with self._token_lock:
            if self._token is not None:
                self._token.cancel()
                self._token = None

    def _search(
        self, graph: ImageGraph, source: Point, target: Point, token: CancellationToken
    ) -> None:
        """Worker body. Publishes the path, or None on failure, unless cancelled."""
        stats = SearchStats(source=source.to_tuple(), target=target.to_tuple())
        stats.start_time = time.time()
        last_percent = 0

        def report(settled: int, total: int) -> None:
            nonlocal last_percent
            percent = min(99, settled * 100 // max(total, 1))
            if percent > last_percent and not token.cancelled:
                last_percent = percent
                self._results.publish(_SEARCH_PROGRESS, token, percent)

        paths = ShortestPaths(
            graph,
            graph.vertex_at(source),
            token=token,
            check_interval=self.settings.scissors.check_interval,
            progress_callback=report if self._events.has_listeners("progress") else None,
        )
        segment: PolyLine | None = None
        try:
            route = paths.path_to(graph.vertex_at(target))
            token.raise_if_cancelled(paths.settled_count)
            segment = PolyLine.from_points([graph.point_of(v) for v in route])
        except SearchAbortedError as e:
            stats.cancelled = True
            stats.settled_count = e.settled
            stats.end_time = time.time()
            self._log.log_search_aborted(stats)
            return
        except Exception as e:
            self._log.log_search_error(e, traceback.format_exc())
        else:
            stats.settled_count = paths.settled_count
            stats.path_length = len(segment)
            stats.end_time = time.time()
            self._log.log_search_complete(stats)
            self._results.publish(_SEARCH_PROGRESS, token, 100)

        self._results.publish(_SEARCH_DONE, token, segment)

    def _on_search_done(self, event: PropertyChange) -> None:
        token: Any = event.old_value
        segment: PolyLine | None = event.new_value
        with self._token_lock:
            if token is not self._token or token.cancelled:
                return
            self._token = None
            if segment is None:
                # Search failed: drop the snapshot taken for this edit
                self._restore(self._discard_pending_snapshot())
                return
            self._commit([segment])

    def _on_search_progress(self, event: PropertyChange) -> None:
        token: Any = event.old_value
        with self._token_lock:
            if token is not self._token or token.cancelled:
                return
            self._events.publish("progress", None, event.new_value)
