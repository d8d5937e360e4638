"""Core geometric types for boundary representation.

This module defines the fundamental geometric types used throughout regionselect:
- Point: An integer position in image pixel coordinates
- PolyLine: One piece of a selection boundary connecting two points
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Point:
    """A point in image coordinate space.

    Immutable and hashable for use in sets/dicts and as graph keys.

    Attributes:
        x: Column in pixels (0 is the left edge)
        y: Row in pixels (0 is the top edge)
    """

    x: int
    y: int

    def to_tuple(self) -> tuple[int, int]:
        """Convert to simple (x, y) tuple.

        Returns:
            Tuple of (x, y) coordinates
        """
        return (self.x, self.y)

    def distance_sq(self, other: "Point") -> int:
        """Return the squared Euclidean distance to another point."""
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary with x and y fields
        """
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Point":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with x and y fields

        Returns:
            Point instance
        """
        return cls(x=int(data["x"]), y=int(data["y"]))


@dataclass(frozen=True, slots=True)
class PolyLine:
    """One segment of a selection boundary.

    A segment always runs from ``start`` to ``end``. Straight segments have no
    interior points; segments produced by a path search carry the pixels the
    path visits between its endpoints in ``interior``.

    Attributes:
        start: First point of the segment
        end: Last point of the segment
        interior: Points strictly between start and end, in path order
    """

    start: Point
    end: Point
    interior: tuple[Point, ...] = field(default=())

    @classmethod
    def from_points(cls, points: list[Point] | tuple[Point, ...]) -> "PolyLine":
        """Build a segment from a path of at least one point.

        A single-point path yields a degenerate segment whose start and end
        coincide.

        Args:
            points: Path points in order

        Returns:
            PolyLine running along the path

        Raises:
            ValueError: If the path is empty
        """
        if not points:
            raise ValueError("Cannot build a PolyLine from an empty path")
        return cls(start=points[0], end=points[-1], interior=tuple(points[1:-1]))

    @property
    def points(self) -> tuple[Point, ...]:
        """All points of the segment, start first and end last."""
        return (self.start, *self.interior, self.end)

    def __len__(self) -> int:
        return len(self.interior) + 2

    def bounding_box(self) -> tuple[int, int, int, int]:
        """Calculate bounding box of the segment.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        xs = [p.x for p in self.points]
        ys = [p.y for p in self.points]
        return (min(xs), min(ys), max(xs), max(ys))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary representation of the segment
        """
        return {
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "interior": [p.to_dict() for p in self.interior],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PolyLine":
        """Deserialize from dictionary.

        Args:
            data: Dictionary representation of a segment

        Returns:
            PolyLine instance
        """
        return cls(
            start=Point.from_dict(data["start"]),
            end=Point.from_dict(data["end"]),
            interior=tuple(Point.from_dict(p) for p in data.get("interior", [])),
        )
