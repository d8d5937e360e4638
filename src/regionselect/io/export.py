"""Export of selected image regions.

The enclosed region of a closed boundary is written as an image cropped to the
boundary's bounding box, with an alpha channel that is opaque inside the
boundary and transparent outside it.
"""

from collections.abc import Sequence
from typing import BinaryIO

from PIL import Image, ImageDraw

from regionselect.domain import PolyLine
from regionselect.exceptions import ExportError


def selection_polygon(segments: Sequence[PolyLine]) -> list[tuple[int, int]]:
    """Flatten a chain of segments into polygon vertices.

    Shared endpoints between consecutive segments appear once.

    Args:
        segments: Connected segments, each starting where the previous ended

    Returns:
        List of (x, y) vertices
    """
    vertices: list[tuple[int, int]] = []
    for segment in segments:
        points = segment.points
        if vertices and vertices[-1] == points[0].to_tuple():
            points = points[1:]
        vertices.extend(p.to_tuple() for p in points)
    # A closed loop repeats its first vertex at the end
    if len(vertices) > 1 and vertices[0] == vertices[-1]:
        vertices.pop()
    return vertices


def polygon_bounds(
    vertices: Sequence[tuple[int, int]], size: tuple[int, int]
) -> tuple[int, int, int, int]:
    """Return the polygon's bounding box clipped to an image of ``size``.

    Returns:
        Tuple of (left, top, right, bottom) with exclusive right/bottom
    """
    width, height = size
    left = max(min(x for x, _ in vertices), 0)
    top = max(min(y for _, y in vertices), 0)
    right = min(max(x for x, _ in vertices) + 1, width)
    bottom = min(max(y for _, y in vertices) + 1, height)
    return (left, top, right, bottom)


def render_region(image: Image.Image, segments: Sequence[PolyLine]) -> Image.Image:
    """Cut the region enclosed by ``segments`` out of ``image``.

    Args:
        image: Source image
        segments: Closed boundary

    Returns:
        RGBA image of the bounding box, transparent outside the boundary

    Raises:
        ExportError: If the boundary encloses no pixels of the image
    """
    vertices = selection_polygon(segments)
    if len(vertices) < 3:
        raise ExportError(f"boundary has {len(vertices)} distinct points, need at least 3")

    left, top, right, bottom = polygon_bounds(vertices, image.size)
    if right <= left or bottom <= top:
        raise ExportError("boundary lies outside the image")

    mask = Image.new("L", image.size, 0)
    ImageDraw.Draw(mask).polygon(vertices, fill=255, outline=255)

    region = image.convert("RGBA")
    region.putalpha(mask)
    return region.crop((left, top, right, bottom))


def write_region(
    image: Image.Image,
    segments: Sequence[PolyLine],
    sink: BinaryIO,
    image_format: str = "PNG",
) -> Image.Image:
    """Write the region enclosed by ``segments`` to a binary sink.

    Args:
        image: Source image
        segments: Closed boundary
        sink: Writable binary file-like object
        image_format: Pillow format name

    Returns:
        The rendered region

    Raises:
        ExportError: If the region cannot be rendered or the sink cannot be written
    """
    region = render_region(image, segments)
    try:
        region.save(sink, format=image_format)
    except (OSError, ValueError, KeyError) as e:
        raise ExportError(str(e)) from e
    return region
