"""Unit tests for shortest-path search and the pixel cost graph."""

import numpy as np
import pytest
from PIL import Image

from regionselect.config import CostModel
from regionselect.domain import Point
from regionselect.exceptions import SearchAbortedError
from regionselect.graph import (
    CancellationToken,
    ImageGraph,
    ShortestPaths,
    gradient_magnitude,
)


class AdjacencyGraph:
    """Small explicit graph for search tests."""

    def __init__(self, edges: dict[str, list[tuple[str, int]]]) -> None:
        self.edges = edges

    def vertex_count(self) -> int:
        return len(self.edges)

    def neighbors(self, vertex: str) -> list[tuple[str, int]]:
        return self.edges.get(vertex, [])


@pytest.fixture
def diamond() -> AdjacencyGraph:
    """Graph where the direct edge is more expensive than the detour."""
    return AdjacencyGraph(
        {
            "a": [("b", 1), ("c", 4), ("d", 10)],
            "b": [("c", 1)],
            "c": [("d", 1)],
            "d": [],
            "e": [("a", 1)],
        }
    )


class TestShortestPaths:
    """Tests for ShortestPaths class."""

    def test_path_prefers_cheaper_detour(self, diamond):
        """Test the cheapest path is found rather than the fewest edges."""
        paths = ShortestPaths(diamond, "a")
        assert paths.path_to("d") == ["a", "b", "c", "d"]
        assert paths.distance_to("d") == 3

    def test_path_to_source(self, diamond):
        """Test the path to the source is the source itself."""
        paths = ShortestPaths(diamond, "a")
        assert paths.path_to("a") == ["a"]
        assert paths.distance_to("a") == 0

    def test_incremental_settling(self, diamond):
        """Test queries only settle as far as needed."""
        paths = ShortestPaths(diamond, "a")
        paths.path_to("b")
        assert paths.settled_count == 2
        assert paths.distance_to("d") == 3

    def test_unreachable_raises(self, diamond):
        """Test an unreachable target raises KeyError."""
        paths = ShortestPaths(diamond, "a")
        with pytest.raises(KeyError):
            paths.path_to("e")

    def test_settle_all(self, diamond):
        """Test settling every reachable vertex."""
        paths = ShortestPaths(diamond, "a")
        assert paths.settle_until(None)
        assert paths.settled_count == 4

    def test_cancellation(self, diamond):
        """Test a cancelled token aborts the search."""
        token = CancellationToken()
        token.cancel()
        paths = ShortestPaths(diamond, "a", token=token, check_interval=1)
        with pytest.raises(SearchAbortedError) as exc_info:
            paths.path_to("d")
        assert exc_info.value.settled == 1

    def test_progress_callback(self, diamond):
        """Test progress is reported as (settled, total)."""
        reports: list[tuple[int, int]] = []
        paths = ShortestPaths(
            diamond, "a", check_interval=2, progress_callback=lambda s, t: reports.append((s, t))
        )
        paths.settle_until(None)
        assert reports == [(2, 5), (4, 5)]


class TestCancellationToken:
    """Tests for CancellationToken class."""

    def test_initially_not_cancelled(self):
        """Test a new token is not cancelled."""
        token = CancellationToken()
        assert not token.cancelled
        token.raise_if_cancelled(0)

    def test_cancel(self):
        """Test cancel sets the flag and raising reports settled count."""
        token = CancellationToken()
        token.cancel()
        assert token.cancelled
        with pytest.raises(SearchAbortedError, match="12"):
            token.raise_if_cancelled(12)


class TestGradientMagnitude:
    """Tests for gradient_magnitude function."""

    def test_flat_image_has_no_gradient(self):
        """Test a constant image has zero gradient everywhere."""
        pixels = np.full((5, 5, 3), 128.0)
        assert np.all(gradient_magnitude(pixels, CostModel.GRAY) == 0)

    def test_normalized(self):
        """Test gradients are scaled to at most 1."""
        pixels = np.zeros((4, 6, 3))
        pixels[:, 3:] = 255.0
        magnitude = gradient_magnitude(pixels, CostModel.GRAY)
        assert magnitude.max() == pytest.approx(1.0)
        assert magnitude[0, 0] == 0

    def test_color_sees_isoluminant_edge(self):
        """Test the color model detects an edge the gray model barely sees."""
        pixels = np.zeros((4, 6, 3))
        # Two colors with almost equal luminance
        pixels[:, :3] = [255.0, 0.0, 0.0]
        pixels[:, 3:] = [0.0, 130.0, 0.0]
        color = gradient_magnitude(pixels, CostModel.COLOR)
        gray_raw = np.gradient(pixels @ np.array([0.299, 0.587, 0.114]), axis=1)
        assert color.max() == pytest.approx(1.0)
        assert np.abs(gray_raw).max() < 10

    def test_single_row(self):
        """Test images one pixel tall are supported."""
        pixels = np.array([[0.0, 10.0, 20.0]])
        magnitude = gradient_magnitude(pixels, CostModel.GRAY)
        assert magnitude.shape == (1, 3)


class TestImageGraph:
    """Tests for ImageGraph class."""

    def test_vertex_mapping(self):
        """Test vertex ids round-trip through points."""
        graph = ImageGraph(np.zeros((3, 4)), CostModel.GRAY)
        assert graph.vertex_count() == 12
        v = graph.vertex_at(Point(2, 1))
        assert v == 6
        assert graph.point_of(v) == Point(2, 1)

    def test_vertex_outside_raises(self):
        """Test points outside the image are rejected."""
        graph = ImageGraph(np.zeros((3, 4)), CostModel.GRAY)
        assert not graph.contains(Point(4, 0))
        with pytest.raises(ValueError):
            graph.vertex_at(Point(-1, 0))

    def test_neighbors_corner_and_center(self):
        """Test corner pixels have 3 neighbors and interior pixels 8."""
        graph = ImageGraph(np.zeros((3, 3)), CostModel.GRAY)
        assert len(graph.neighbors(graph.vertex_at(Point(0, 0)))) == 3
        assert len(graph.neighbors(graph.vertex_at(Point(1, 1)))) == 8

    def test_flat_weights(self):
        """Test flat regions cost edge_scale per step plus one, more for diagonals."""
        graph = ImageGraph(np.zeros((3, 3)), CostModel.GRAY, edge_scale=10)
        weights = dict(graph.neighbors(graph.vertex_at(Point(1, 1))))
        assert weights[graph.vertex_at(Point(2, 1))] == 11
        assert weights[graph.vertex_at(Point(2, 2))] == 15

    def test_path_follows_edge(self):
        """Test the cheapest path hugs a strong vertical edge."""
        pixels = np.zeros((9, 9, 3))
        pixels[:, 5:] = 255.0
        graph = ImageGraph(pixels, CostModel.GRAY)
        paths = ShortestPaths(graph, graph.vertex_at(Point(4, 0)))
        route = [graph.point_of(v) for v in paths.path_to(graph.vertex_at(Point(4, 8)))]
        assert route[0] == Point(4, 0)
        assert route[-1] == Point(4, 8)
        assert all(p.x in (4, 5) for p in route)

    def test_from_image(self):
        """Test building a graph from a Pillow image."""
        image = Image.new("RGB", (7, 5), (10, 20, 30))
        graph = ImageGraph.from_image(image, CostModel.COLOR)
        assert (graph.width, graph.height) == (7, 5)
