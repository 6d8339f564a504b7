"""Ray-casting render pipeline.

The ``Renderer`` turns a prepared mesh and a camera into three images:

    color: (H, W, 3) uint8, vertex colors or black background
    depth: (H, W) uint16, camera-space z of the hit * depth_scale
    mask:  (H, W) uint8, 255 where a (front-facing) surface was hit, else 0

Typical flow:

    set_mesh -> prepare_mesh (flatten + build accelerator, once per mesh)
    set_camera -> render (repeatable for any number of cameras/poses)

``render`` never raises for setup mistakes. Missing preparation, a missing
camera or an empty resolution come back as a ``RenderStatus`` in the
``RenderResult`` and no images are produced. Per-pixel misses are normal
outcomes and only show up as zeros in the mask.

Pixels are processed in horizontal bands: each band's rays are queried in
one vectorised call to the intersection provider, then shaded in a Taichi
kernel. Between bands the renderer reports progress and checks for
cancellation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from meshcast.camera.pinhole import PinholeCamera
    >>> from meshcast.core.options import RenderOptions
    >>> from meshcast.core.renderer import Renderer
    >>> from meshcast.geometry.mesh import load_mesh
    >>>
    >>> renderer = Renderer(RenderOptions(depth_scale=1000.0))
    >>> renderer.set_mesh(load_mesh("bunny.obj"))
    >>> renderer.prepare_mesh()
    >>> renderer.set_camera(PinholeCamera(640, 480, fov_y=45.0))
    >>> result = renderer.render()
    >>> result.ok, result.depth.dtype
    (True, dtype('uint16'))
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np
import numpy.typing as npt

from meshcast.camera.base import Camera, Frame
from meshcast.core.errors import ConfigurationError, PreconditionError
from meshcast.core.options import ColorInterpolation, RenderOptions
from meshcast.core.shading import shade_hits
from meshcast.geometry.mesh import Mesh
from meshcast.scene.intersection import IntersectionProvider, TriangleIntersector

logger = logging.getLogger(__name__)

# Rows of pixels shaded per intersection query / progress update
DEFAULT_BAND_HEIGHT = 64

# Largest value representable in the depth image
MAX_DEPTH_VALUE = np.iinfo(np.uint16).max

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


class CancelToken(Protocol):
    """Anything with ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


class RenderStatus(Enum):
    """Outcome of a render call."""

    OK = "ok"
    MESH_NOT_PREPARED = "mesh_not_prepared"
    NO_CAMERA = "no_camera"
    INVALID_RESOLUTION = "invalid_resolution"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RenderResult:
    """Images produced by one render call, or the reason there are none.

    Attributes:
        status: OK, or the precondition that failed.
        color: (H, W, 3) uint8 color image, None unless status is OK.
        depth: (H, W) uint16 depth image, None unless status is OK.
        mask: (H, W) uint8 mask image with values in {0, 255}, None unless OK.
    """

    status: RenderStatus
    color: npt.NDArray[np.uint8] | None = None
    depth: npt.NDArray[np.uint16] | None = None
    mask: npt.NDArray[np.uint8] | None = None

    @property
    def ok(self) -> bool:
        return self.status is RenderStatus.OK

    @classmethod
    def failure(cls, status: RenderStatus) -> RenderResult:
        return cls(status=status)


class Renderer:
    """Ray-casting renderer for a single mesh and any number of cameras.

    The mesh and camera are shared references: the renderer never copies or
    mutates them, and callers may reuse them across renderers. A mesh must
    not change between ``prepare_mesh`` and the renders that use it.

    Args:
        options: Default render options, used when ``render`` gets none.
        intersector_factory: Zero-argument callable returning a fresh
            ``IntersectionProvider``. Defaults to ``TriangleIntersector``.
        band_height: Rows per intersection batch and progress update.
    """

    def __init__(
        self,
        options: RenderOptions | None = None,
        *,
        intersector_factory: Callable[[], IntersectionProvider] = TriangleIntersector,
        band_height: int = DEFAULT_BAND_HEIGHT,
    ) -> None:
        if band_height <= 0:
            raise ConfigurationError(f"band_height must be positive, got {band_height}")
        self._options = options if options is not None else RenderOptions()
        self._intersector_factory = intersector_factory
        self._band_height = band_height

        self._mesh: Mesh | None = None
        self._camera: Camera | None = None

        # Prepared state, rebuilt only by prepare_mesh
        self._intersector: IntersectionProvider | None = None
        self._vertices: npt.NDArray[np.float32] | None = None
        self._faces: npt.NDArray[np.int32] | None = None
        self._colors: npt.NDArray[np.float32] | None = None

    def __repr__(self) -> str:
        return (
            f"Renderer(prepared={self.prepared}, camera={self._camera!r}, "
            f"options={self._options!r})"
        )

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    @property
    def options(self) -> RenderOptions:
        return self._options

    @property
    def mesh(self) -> Mesh | None:
        return self._mesh

    @property
    def camera(self) -> Camera | None:
        return self._camera

    @property
    def prepared(self) -> bool:
        return self._intersector is not None

    def set_options(self, options: RenderOptions) -> None:
        self._options = options

    def set_camera(self, camera: Camera | None) -> None:
        self._camera = camera

    def set_mesh(self, mesh: Mesh | None) -> None:
        """Attach a mesh. Any previous preparation is discarded."""
        self._mesh = mesh
        self._intersector = None
        self._vertices = None
        self._faces = None
        self._colors = None

    def prepare_mesh(self) -> bool:
        """Flatten the mesh buffers and build the intersection accelerator.

        Returns:
            True once the accelerator is ready.

        Raises:
            PreconditionError: If no mesh has been set.
            ConfigurationError: If the mesh has no vertices or no faces.
        """
        if self._mesh is None:
            raise PreconditionError("No mesh set. Call set_mesh() first.")
        mesh = self._mesh
        if mesh.num_vertices == 0 or mesh.num_faces == 0:
            raise ConfigurationError(
                f"Mesh has {mesh.num_vertices} vertices and {mesh.num_faces} faces; "
                "both must be non-zero"
            )

        start = time.perf_counter()
        vertices, faces = mesh.flatten()
        intersector = self._intersector_factory()
        intersector.build(vertices, faces)

        self._vertices = vertices.reshape(-1, 3)
        self._faces = faces.reshape(-1, 3)
        self._colors = (
            np.array(mesh.vertex_colors, dtype=np.float32)
            if mesh.has_vertex_colors
            else None
        )
        self._intersector = intersector
        logger.debug(
            "Prepared mesh (%d vertices, %d faces) in %.3fs",
            mesh.num_vertices,
            mesh.num_faces,
            time.perf_counter() - start,
        )
        return True

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render(
        self,
        camera: Camera | None = None,
        options: RenderOptions | None = None,
        *,
        callback: ProgressCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> RenderResult:
        """Render color, depth and mask images.

        Args:
            camera: Camera to render from. Defaults to the attached camera.
            options: Options for this call. Defaults to ``self.options``.
            callback: Called with (rows_done, total_rows) after each band.
            cancel: Checked before each band; when set the render stops and
                returns ``RenderStatus.CANCELLED``.

        Returns:
            A ``RenderResult``; images are only present when ``ok``.
        """
        camera = camera if camera is not None else self._camera
        options = options if options is not None else self._options

        if not self.prepared:
            logger.warning("render() called before prepare_mesh()")
            return RenderResult.failure(RenderStatus.MESH_NOT_PREPARED)
        if camera is None:
            logger.warning("render() called without a camera")
            return RenderResult.failure(RenderStatus.NO_CAMERA)
        width, height = camera.width, camera.height
        if width <= 0 or height <= 0:
            logger.warning("render() called with camera resolution %dx%d", width, height)
            return RenderResult.failure(RenderStatus.INVALID_RESOLUTION)

        start = time.perf_counter()
        org_w = camera.ray_origins(Frame.WORLD)
        dir_w = camera.ray_directions(Frame.WORLD)
        org_c = camera.ray_origins(Frame.CAMERA)
        dir_c = camera.ray_directions(Frame.CAMERA)

        use_color = options.use_vertex_color and self._colors is not None
        if options.use_vertex_color and not use_color:
            logger.debug("use_vertex_color set but mesh has no vertex colors")
        colors = self._colors if use_color else np.zeros((1, 3), dtype=np.float32)
        interp_bilinear = int(options.interp is ColorInterpolation.BILINEAR)

        color = np.zeros((height, width, 3), dtype=np.float32)
        depth = np.zeros((height, width), dtype=np.float32)
        mask = np.zeros((height, width), dtype=np.int32)

        for row_start in range(0, height, self._band_height):
            if cancel is not None and cancel.is_set():
                logger.debug("Render cancelled at row %d/%d", row_start, height)
                return RenderResult.failure(RenderStatus.CANCELLED)

            rows = slice(row_start, min(row_start + self._band_height, height))
            n_rows = rows.stop - rows.start
            hits = self._intersector.nearest_hits(
                org_w[rows].reshape(-1, 3),
                dir_w[rows].reshape(-1, 3),
            )

            band_color = np.zeros((n_rows, width, 3), dtype=np.float32)
            band_depth = np.zeros((n_rows, width), dtype=np.float32)
            band_mask = np.zeros((n_rows, width), dtype=np.int32)
            shade_hits(
                hits.face_ids.astype(np.int32).reshape(n_rows, width),
                hits.u.astype(np.float32).reshape(n_rows, width),
                hits.v.astype(np.float32).reshape(n_rows, width),
                hits.distances.astype(np.float32).reshape(n_rows, width),
                np.array(org_c[rows], dtype=np.float32),
                np.array(dir_c[rows], dtype=np.float32),
                np.array(dir_w[rows], dtype=np.float32),
                self._vertices,
                self._faces,
                colors,
                int(use_color),
                interp_bilinear,
                int(options.backface_culling),
                float(options.depth_scale),
                band_color,
                band_depth,
                band_mask,
            )
            color[rows] = band_color
            depth[rows] = band_depth
            mask[rows] = band_mask

            if callback is not None:
                callback(rows.stop, height)

        result = RenderResult(
            status=RenderStatus.OK,
            color=quantize_color(color),
            depth=quantize_depth(depth),
            mask=mask.astype(np.uint8),
        )
        logger.debug(
            "Rendered %dx%d (%d hits) in %.3fs",
            width,
            height,
            int(np.count_nonzero(result.mask)),
            time.perf_counter() - start,
        )
        return result


def quantize_color(color: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Round float colors in [0, 255] to uint8, clamping out-of-range values."""
    return np.clip(np.rint(color), 0, 255).astype(np.uint8)


def quantize_depth(depth: npt.NDArray[np.floating]) -> npt.NDArray[np.uint16]:
    """Round scaled depth to the nearest integer, then clamp to uint16.

    Rounding rather than truncation keeps values such as ``0.99999994 * 1000``
    at 1000. Values outside [0, 65535] saturate at the bounds.
    """
    return np.clip(np.rint(depth), 0, MAX_DEPTH_VALUE).astype(np.uint16)
