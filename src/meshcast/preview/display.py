"""Matplotlib-based preview of render results.

The raw 16-bit depth image is hard to look at directly, so this module
provides a normalization that stretches the valid (masked) depth range to
[0, 1] and a side-by-side figure of color, depth and mask.

Example:
    >>> from meshcast.preview.display import show_result
    >>> show_result(renderer.render())
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from meshcast.core.renderer import RenderResult


def normalize_depth(
    depth: npt.NDArray[np.uint16],
    mask: npt.NDArray[np.uint8] | None = None,
) -> npt.NDArray[np.float32]:
    """Map valid depth values to [0, 1], near = 0 and far = 1.

    Pixels outside the mask (or with zero depth when no mask is given)
    become 1.0 (far). A constant depth maps to 0.0.

    Args:
        depth: (H, W) depth image.
        mask: Optional (H, W) validity mask, non-zero where depth is valid.

    Returns:
        (H, W) float32 image in [0, 1].
    """
    valid = (mask > 0) if mask is not None else (depth > 0)
    result = np.ones(depth.shape, dtype=np.float32)
    if not np.any(valid):
        return result

    values = depth[valid].astype(np.float32)
    near, far = values.min(), values.max()
    span = far - near
    result[valid] = (values - near) / span if span > 0 else 0.0
    return result


def show_result(result: RenderResult, title: str | None = None, cmap: str = "viridis") -> None:
    """Display color, depth and mask side by side in a Matplotlib window.

    Args:
        result: A successful render result.
        title: Optional figure title.
        cmap: Matplotlib colormap used for depth.

    Raises:
        ValueError: If the result carries no images.
    """
    import matplotlib.pyplot as plt

    if not result.ok:
        raise ValueError(f"Cannot display a failed render (status={result.status.value})")

    fig, axes = plt.subplots(1, 3, figsize=(15, 5))
    axes[0].imshow(result.color)
    axes[0].set_title("Color")
    axes[1].imshow(normalize_depth(result.depth, result.mask), cmap=cmap)
    axes[1].set_title("Depth")
    axes[2].imshow(result.mask, cmap="gray", vmin=0, vmax=255)
    axes[2].set_title("Mask")
    for ax in axes:
        ax.axis("off")
    if title:
        fig.suptitle(title)
    plt.tight_layout()
    plt.show()
