"""Image loading for regionselect.

Decoding is delegated to Pillow. Images are fully loaded and converted to RGB so
the selection engine never holds an open file handle.
"""

from pathlib import Path

from PIL import Image, UnidentifiedImageError

from regionselect.exceptions import ImageLoadError


def load_image(path: Path) -> Image.Image:
    """Load an image file into memory.

    Args:
        path: Path to an image in any format Pillow can read

    Returns:
        RGB Pillow image

    Raises:
        ImageLoadError: If the file is missing or cannot be decoded
    """
    if not path.exists():
        raise ImageLoadError(str(path), "file not found")

    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadError(str(path), str(e)) from e


def get_export_path(input_path: Path) -> Path:
    """Generate the default output path for an exported region.

    Converts: photo.jpg -> photo-selection.png

    Args:
        input_path: Source image path

    Returns:
        Path with -selection suffix and .png extension
    """
    return input_path.parent / f"{input_path.stem}-selection.png"
