"""Core rendering module.

Components:
    errors: Error types for configuration and precondition failures
    options: RenderOptions value object and color interpolation modes
    shading: Taichi per-pixel shading kernel
    renderer: Renderer (prepare + render) and RenderResult
    sequence: Trajectory rendering helper

The render pipeline casts one ray per pixel from the camera's ray tables,
asks the intersection provider for the nearest hit, and shades the hit into
color, depth and mask images.
"""

from .errors import ConfigurationError, MeshcastError, PreconditionError
from .options import ColorInterpolation, RenderOptions

# Note: renderer and sequence are NOT imported here to avoid circular imports
# (the camera package depends on core.errors). Import them directly:
#   from meshcast.core.renderer import Renderer

__all__ = [
    "MeshcastError",
    "ConfigurationError",
    "PreconditionError",
    "ColorInterpolation",
    "RenderOptions",
]
