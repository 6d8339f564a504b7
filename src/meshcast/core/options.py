"""Render options value object.

``RenderOptions`` is a frozen dataclass: it is compared by value, safe to
share between renderers, and applied fresh on every render call.

Example:
    >>> from meshcast.core.options import ColorInterpolation, RenderOptions
    >>> options = RenderOptions(use_vertex_color=True, depth_scale=1000.0)
    >>> nearest = options.copy(interp=ColorInterpolation.NN)
    >>> nearest == options
    False
"""

import dataclasses
import math
from dataclasses import dataclass
from enum import IntEnum

from meshcast.core.errors import ConfigurationError


class ColorInterpolation(IntEnum):
    """How per-vertex colors are turned into a pixel color.

    NN picks the color of the vertex with the largest barycentric weight.
    BILINEAR blends all three vertex colors by their barycentric weights.
    """

    NN = 0
    BILINEAR = 1


@dataclass(frozen=True)
class RenderOptions:
    """Shading configuration for a single render call.

    Attributes:
        use_vertex_color: Shade hits with interpolated per-vertex colors.
            When False (or the mesh has no colors) hits keep the black
            background color.
        depth_scale: Multiplier applied to camera-space depth before it is
            quantized into the 16-bit depth image (e.g. 1000.0 for
            millimetres from a metre-scaled mesh).
        interp: Vertex color interpolation mode.
        backface_culling: Treat hits on faces pointing away from the ray
            origin as misses.
    """

    use_vertex_color: bool = False
    depth_scale: float = 1.0
    interp: ColorInterpolation = ColorInterpolation.BILINEAR
    backface_culling: bool = True

    def __post_init__(self) -> None:
        if not math.isfinite(self.depth_scale):
            raise ConfigurationError(f"depth_scale must be finite, got {self.depth_scale}")
        # Accept plain ints (0/1) for interp
        object.__setattr__(self, "interp", ColorInterpolation(self.interp))

    def copy(self, **changes: object) -> "RenderOptions":
        """Return a copy, optionally with some fields replaced."""
        return dataclasses.replace(self, **changes)
