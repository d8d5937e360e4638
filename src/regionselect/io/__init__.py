"""Image I/O layer for regionselect.

This module handles reading source images and writing selected regions using
Pillow. It provides a clean abstraction layer between Pillow and the
selection models.

Key responsibilities:
- Load images into memory as RGB
- Flatten a closed boundary into a polygon mask
- Write the enclosed region with transparency outside the boundary

Key functions:
- load_image: Load an image file
- write_region: Export a selected region to a binary sink
"""

from regionselect.io.export import render_region, selection_polygon, write_region
from regionselect.io.image import get_export_path, load_image

__all__ = [
    "get_export_path",
    "load_image",
    "render_region",
    "selection_polygon",
    "write_region",
]
