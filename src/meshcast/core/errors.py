"""Error types raised by the camera model and render pipeline.

Configuration problems (bad image size, missing intrinsics, malformed poses)
are raised eagerly when the offending value is set. Render-time preconditions
are reported through ``RenderStatus`` values instead, see
``meshcast.core.renderer``.
"""


class MeshcastError(Exception):
    """Base class for all errors raised by meshcast."""


class ConfigurationError(MeshcastError, ValueError):
    """Raised when a camera, mesh or option value is invalid."""


class PreconditionError(MeshcastError, RuntimeError):
    """Raised when an operation is called before its required setup step."""
