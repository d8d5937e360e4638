"""Selection tool that connects each added point with a straight line."""

from regionselect.domain import Point, PolyLine
from regionselect.exceptions import InvalidStateError
from regionselect.selection.model import SELECTING, SelectionModel


class PointToPointModel(SelectionModel):
    """Models a selection tool that connects each added point with a straight line."""

    tool_name = "point-to-point"

    def live_wire(self, p: Point) -> PolyLine:
        """Return a straight line segment from our last point to ``p``."""
        if self._state is not SELECTING:
            raise InvalidStateError("preview a live wire", self._state)
        return PolyLine(self.last_point(), p)

    def _append_to_selection(self, p: Point) -> None:
        """Append a straight line segment connecting the end of the selection with ``p``."""
        self._commit([PolyLine(self.last_point(), p)])
