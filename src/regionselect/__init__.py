"""Regionselect - Trace boundaries around image regions and export them.

Regionselect provides an interactive boundary-selection engine: a selection
state machine with undo, live preview and point relocation, driven by either
straight-line point-to-point segments or "intelligent scissors" segments that
follow low-cost paths through the image.

Example:
    $ regionselect photo.png -p 10,10 -p 120,15 -p 90,140 -o region.png

This traces a triangle over photo.png and writes the enclosed pixels to
region.png.
"""

__version__ = "0.1.0"
__author__ = "Dimosthenis Kaponis"

__all__ = ["__author__", "__version__"]
