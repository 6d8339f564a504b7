"""Image export utilities for render results.

Supported formats:
    - color: 8-bit RGB PNG
    - depth: 16-bit grayscale PNG (raw quantized values, not normalized)
    - mask: 8-bit grayscale PNG with values 0 / 255

All files are written with Pillow.

Example:
    >>> from meshcast.preview.export import save_result
    >>> result = renderer.render()
    >>> paths = save_result(result, "out", "frame_00000")
    >>> paths["depth"]
    PosixPath('out/frame_00000_depth.png')
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from meshcast.core.renderer import RenderResult


def save_color_png(color: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an (H, W, 3) uint8 color image as an RGB PNG.

    Raises:
        ValueError: If the array has the wrong shape or dtype.
    """
    if color.ndim != 3 or color.shape[2] != 3 or color.dtype != np.uint8:
        raise ValueError(f"Color image must be (H, W, 3) uint8, got {color.shape} {color.dtype}")
    PILImage.fromarray(np.ascontiguousarray(color)).save(filepath)


def save_depth_png(depth: npt.NDArray[np.uint16], filepath: str | Path) -> None:
    """Save an (H, W) uint16 depth image as a 16-bit PNG.

    Raises:
        ValueError: If the array has the wrong shape or dtype.
    """
    if depth.ndim != 2 or depth.dtype != np.uint16:
        raise ValueError(f"Depth image must be (H, W) uint16, got {depth.shape} {depth.dtype}")
    PILImage.fromarray(np.ascontiguousarray(depth)).save(filepath)


def save_mask_png(mask: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an (H, W) uint8 mask image as a grayscale PNG.

    Raises:
        ValueError: If the array has the wrong shape or dtype.
    """
    if mask.ndim != 2 or mask.dtype != np.uint8:
        raise ValueError(f"Mask image must be (H, W) uint8, got {mask.shape} {mask.dtype}")
    PILImage.fromarray(np.ascontiguousarray(mask)).save(filepath)


def load_depth_png(filepath: str | Path) -> npt.NDArray[np.uint16]:
    """Read a 16-bit depth PNG back into an (H, W) uint16 array."""
    with PILImage.open(filepath) as image:
        # Pillow may open 16-bit PNGs as I;16 or as 32-bit I
        return np.asarray(image).astype(np.uint16)


def save_result(result: RenderResult, directory: str | Path, stem: str) -> dict[str, Path]:
    """Write the three images of a successful render.

    Files are named ``<stem>_color.png``, ``<stem>_depth.png`` and
    ``<stem>_mask.png``. The directory is created if needed.

    Returns:
        Mapping from "color", "depth" and "mask" to the written paths.

    Raises:
        ValueError: If the result carries no images (status is not OK).
    """
    if not result.ok:
        raise ValueError(f"Cannot export a failed render (status={result.status.value})")

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "color": out_dir / f"{stem}_color.png",
        "depth": out_dir / f"{stem}_depth.png",
        "mask": out_dir / f"{stem}_mask.png",
    }
    save_color_png(result.color, paths["color"])
    save_depth_png(result.depth, paths["depth"])
    save_mask_png(result.mask, paths["mask"])
    return paths
