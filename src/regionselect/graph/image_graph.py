"""Pixel cost graph for intelligent scissors.

Every pixel is a vertex connected to its 8 neighbors. Edges are cheap where the
image has strong edges (high gradient magnitude), so the cheapest path between
two points hugs object boundaries.

Two cost models are supported:
- GRAY: gradient magnitude of the luminance channel
- COLOR: largest gradient magnitude over the RGB channels
"""

import math

import numpy as np
from PIL import Image

from regionselect.config import CostModel
from regionselect.domain import Point

# Neighbor offsets (dx, dy) and whether the step is diagonal
_OFFSETS: tuple[tuple[int, int, bool], ...] = (
    (-1, -1, True),
    (0, -1, False),
    (1, -1, True),
    (-1, 0, False),
    (1, 0, False),
    (-1, 1, True),
    (0, 1, False),
    (1, 1, True),
)

_LUMA = np.array([0.299, 0.587, 0.114])


def image_to_array(image: Image.Image) -> np.ndarray:
    """Convert a Pillow image to a float RGB array of shape (height, width, 3)."""
    return np.asarray(image.convert("RGB"), dtype=np.float64)


def gradient_magnitude(pixels: np.ndarray, cost_model: CostModel) -> np.ndarray:
    """Compute a per-pixel gradient magnitude normalized to [0, 1].

    Args:
        pixels: Array of shape (height, width) or (height, width, channels)
        cost_model: Which channels contribute to the gradient

    Returns:
        Array of shape (height, width)
    """
    if pixels.ndim == 2:
        channels = pixels[:, :, np.newaxis]
    else:
        channels = pixels[:, :, :3]

    if cost_model is CostModel.GRAY and channels.shape[2] == 3:
        channels = (channels @ _LUMA)[:, :, np.newaxis]

    height, width = channels.shape[:2]
    magnitude = np.zeros((height, width), dtype=np.float64)
    for c in range(channels.shape[2]):
        plane = channels[:, :, c]
        # np.gradient needs at least two samples along an axis
        gy = np.gradient(plane, axis=0) if height > 1 else np.zeros_like(plane)
        gx = np.gradient(plane, axis=1) if width > 1 else np.zeros_like(plane)
        magnitude = np.maximum(magnitude, np.hypot(gx, gy))

    peak = magnitude.max() if magnitude.size else 0.0
    if peak > 0:
        magnitude = magnitude / peak
    return magnitude


class ImageGraph:
    """8-connected pixel graph with gradient-based integer edge weights.

    Vertices are integer ids ``y * width + x``. Edge weights are at least 1 so
    that paths never wander for free.

    Example:
        graph = ImageGraph.from_image(image, CostModel.COLOR)
        v = graph.vertex_at(Point(3, 4))
        for neighbor, weight in graph.neighbors(v):
            ...
    """

    def __init__(self, pixels: np.ndarray, cost_model: CostModel, edge_scale: int = 100) -> None:
        """Initialize the graph from a pixel array.

        Args:
            pixels: Array of shape (height, width) or (height, width, channels)
            cost_model: Gradient cost model
            edge_scale: Cost of a unit step across a perfectly flat region
        """
        self.height = int(pixels.shape[0])
        self.width = int(pixels.shape[1])
        self.cost_model = cost_model
        self.edge_scale = edge_scale
        flatness = 1.0 - gradient_magnitude(pixels, cost_model)
        self._node_cost: list[float] = (flatness * edge_scale).ravel().tolist()

    @classmethod
    def from_image(
        cls, image: Image.Image, cost_model: CostModel, edge_scale: int = 100
    ) -> "ImageGraph":
        """Build a graph from a Pillow image."""
        return cls(image_to_array(image), cost_model, edge_scale)

    def vertex_count(self) -> int:
        """Return the number of pixels."""
        return self.width * self.height

    def contains(self, point: Point) -> bool:
        """Return whether ``point`` lies inside the image."""
        return 0 <= point.x < self.width and 0 <= point.y < self.height

    def vertex_at(self, point: Point) -> int:
        """Return the vertex id of the pixel at ``point``.

        Raises:
            ValueError: If the point is outside the image
        """
        if not self.contains(point):
            raise ValueError(f"Point {point.to_tuple()} outside {self.width}x{self.height} image")
        return point.y * self.width + point.x

    def point_of(self, vertex: int) -> Point:
        """Return the pixel position of a vertex id."""
        y, x = divmod(vertex, self.width)
        return Point(x, y)

    def neighbors(self, vertex: int) -> list[tuple[int, int]]:
        """Return ``(neighbor, weight)`` pairs for the 8-neighborhood of ``vertex``."""
        y, x = divmod(vertex, self.width)
        cost = self._node_cost
        here = cost[vertex]
        result: list[tuple[int, int]] = []
        for dx, dy, diagonal in _OFFSETS:
            nx = x + dx
            ny = y + dy
            if nx < 0 or ny < 0 or nx >= self.width or ny >= self.height:
                continue
            neighbor = ny * self.width + nx
            length = math.sqrt(2.0) if diagonal else 1.0
            weight = int(round((here + cost[neighbor]) * 0.5 * length)) + 1
            result.append((neighbor, weight))
        return result
