"""Preview module for output and visualization.

Components:
    display: Matplotlib-based preview and depth normalization
    export: PNG export of color, 16-bit depth and mask images

Example:
    >>> from meshcast.preview import save_result, show_result
    >>> result = renderer.render()
    >>> save_result(result, "out", "frame_00000")
    >>> show_result(result)
"""

from meshcast.preview.display import normalize_depth, show_result
from meshcast.preview.export import (
    load_depth_png,
    save_color_png,
    save_depth_png,
    save_mask_png,
    save_result,
)

__all__ = [
    # Display functions
    "show_result",
    "normalize_depth",
    # Export functions
    "save_result",
    "save_color_png",
    "save_depth_png",
    "save_mask_png",
    "load_depth_png",
]
