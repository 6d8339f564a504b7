"""Pinhole camera model for perspective ray generation.

The pinhole model uses pixel-scale focal length (fx, fy) and principal point
(px, py), the convention used throughout the computer vision community:

    image.x = fx * p.x / p.z + px
    image.y = fy * p.y / p.z + py
    depth   = p.z

Every ray starts at the camera center. The camera-space direction through
pixel (x, y) is ``normalize((x - px) / fx, (y - py) / fy, 1)``; the world
direction is that vector rotated by the c2w rotation.

The model is only meaningful for fields of view well below 180 degrees.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from meshcast.camera.pinhole import PinholeCamera
    >>> camera = PinholeCamera(640, 480, fov_y=45.0)
    >>> camera.principal_point
    (319.5, 239.5)
    >>> origins = camera.ray_origins("world")  # (480, 640, 3) float32
"""

import math

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from meshcast.camera.base import Camera, Frame, Table, split_image_points
from meshcast.core.errors import ConfigurationError

# =============================================================================
# Ray Table Kernel
# =============================================================================


@ti.kernel
def _fill_pinhole_tables(
    rotation: ti.types.ndarray(dtype=ti.f32, ndim=2),
    translation: ti.types.ndarray(dtype=ti.f32, ndim=1),
    fx: ti.f32,
    fy: ti.f32,
    px: ti.f32,
    py: ti.f32,
    org_c: ti.types.ndarray(dtype=ti.f32, ndim=3),
    org_w: ti.types.ndarray(dtype=ti.f32, ndim=3),
    dir_c: ti.types.ndarray(dtype=ti.f32, ndim=3),
    dir_w: ti.types.ndarray(dtype=ti.f32, ndim=3),
):
    for y, x in ti.ndrange(org_c.shape[0], org_c.shape[1]):
        d = tm.normalize(tm.vec3((x - px) / fx, (y - py) / fy, 1.0))
        for k in ti.static(range(3)):
            org_c[y, x, k] = 0.0
            org_w[y, x, k] = translation[k]
            dir_c[y, x, k] = d[k]
            dir_w[y, x, k] = rotation[k, 0] * d[0] + rotation[k, 1] * d[1] + rotation[k, 2] * d[2]


# =============================================================================
# Camera
# =============================================================================


def focal_from_fov(size: int, fov_deg: float) -> float:
    """Pixel focal length giving ``fov_deg`` across ``size`` pixels."""
    if not 0.0 < fov_deg < 180.0:
        raise ConfigurationError(f"Field of view must be in (0, 180) degrees, got {fov_deg}")
    return size * 0.5 / math.tan(math.radians(fov_deg) * 0.5)


class PinholeCamera(Camera):
    """Perspective camera with pixel-scale intrinsics.

    Intrinsics are given either as a vertical field of view (``fov_y``) or as
    an explicit ``focal_length``. The principal point defaults to the image
    center ``(width / 2 - 0.5, height / 2 - 0.5)``.

    Note:
        ``set_fov_x`` and ``set_fov_y`` assign the same focal length to both
        axes (square pixels), so horizontal and vertical FOV cannot be set
        independently through the FOV API. Use ``set_focal_length`` for
        non-square pixels.

    Raises:
        ConfigurationError: If the size is not positive, or neither
            ``fov_y`` nor ``focal_length`` is given, or the focal length has
            a zero component.
    """

    def __init__(
        self,
        width: int,
        height: int,
        c2w: npt.ArrayLike | None = None,
        *,
        fov_y: float | None = None,
        focal_length: tuple[float, float] | None = None,
        principal_point: tuple[float, float] | None = None,
    ) -> None:
        super().__init__(width, height, c2w)

        if principal_point is None:
            principal_point = (self._width * 0.5 - 0.5, self._height * 0.5 - 0.5)
        self._principal_point = _as_pair(principal_point, "principal_point")

        if focal_length is not None:
            self._focal_length = _as_focal(focal_length)
        elif fov_y is not None:
            f = focal_from_fov(self._height, fov_y)
            self._focal_length = (f, f)
        else:
            raise ConfigurationError("PinholeCamera needs either fov_y or focal_length")

    def __repr__(self) -> str:
        return (
            f"PinholeCamera(width={self.width}, height={self.height}, "
            f"focal_length={self._focal_length}, principal_point={self._principal_point})"
        )

    # -------------------------------------------------------------------------
    # Intrinsics
    # -------------------------------------------------------------------------

    @property
    def focal_length(self) -> tuple[float, float]:
        return self._focal_length

    @property
    def principal_point(self) -> tuple[float, float]:
        return self._principal_point

    @property
    def fov_x(self) -> float:
        """Horizontal field of view in degrees."""
        return math.degrees(2.0 * math.atan(self._width * 0.5 / self._focal_length[0]))

    @property
    def fov_y(self) -> float:
        """Vertical field of view in degrees."""
        return math.degrees(2.0 * math.atan(self._height * 0.5 / self._focal_length[1]))

    @property
    def intrinsic_matrix(self) -> npt.NDArray[np.float64]:
        """3x3 intrinsic matrix K."""
        fx, fy = self._focal_length
        px, py = self._principal_point
        return np.array([[fx, 0.0, px], [0.0, fy, py], [0.0, 0.0, 1.0]])

    def set_focal_length(self, focal_length: tuple[float, float]) -> None:
        self._focal_length = _as_focal(focal_length)
        self._mark_dirty()

    def set_principal_point(self, principal_point: tuple[float, float]) -> None:
        self._principal_point = _as_pair(principal_point, "principal_point")
        self._mark_dirty()

    def set_fov_x(self, fov_x_deg: float) -> None:
        """Set both focal lengths from a horizontal field of view."""
        f = focal_from_fov(self._width, fov_x_deg)
        self._focal_length = (f, f)
        self._mark_dirty()

    def set_fov_y(self, fov_y_deg: float) -> None:
        """Set both focal lengths from a vertical field of view."""
        f = focal_from_fov(self._height, fov_y_deg)
        self._focal_length = (f, f)
        self._mark_dirty()

    # -------------------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------------------

    def project(self, camera_points: npt.ArrayLike) -> npt.NDArray[np.float64]:
        p = np.asarray(camera_points, dtype=np.float64)
        fx, fy = self._focal_length
        px, py = self._principal_point
        z = p[..., 2]
        return np.stack([fx * p[..., 0] / z + px, fy * p[..., 1] / z + py, z], axis=-1)

    def unproject(
        self,
        image_points: npt.ArrayLike,
        depth: npt.ArrayLike | None = None,
    ) -> npt.NDArray[np.float64]:
        """Lift image points to camera space. Depth must be non-zero."""
        x, y, d = split_image_points(image_points, depth)
        fx, fy = self._focal_length
        px, py = self._principal_point
        return np.stack([(x - px) * d / fx, (y - py) * d / fy, d], axis=-1)

    # -------------------------------------------------------------------------
    # Rays
    # -------------------------------------------------------------------------

    def ray_origin(self, x, y, frame=Frame.WORLD):
        xs, _ = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        if Frame(frame) is Frame.CAMERA:
            return np.zeros(xs.shape + (3,))
        return np.broadcast_to(self._c2w[:3, 3], xs.shape + (3,)).copy()

    def ray_direction(self, x, y, frame=Frame.WORLD):
        xs, ys = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        fx, fy = self._focal_length
        px, py = self._principal_point
        d = np.stack([(xs - px) / fx, (ys - py) / fy, np.ones_like(xs)], axis=-1)
        d /= np.linalg.norm(d, axis=-1, keepdims=True)
        if Frame(frame) is Frame.WORLD:
            d = d @ self._c2w[:3, :3].T
        return d

    def _fill_tables(self, org_c: Table, org_w: Table, dir_c: Table, dir_w: Table) -> None:
        fx, fy = self._focal_length
        px, py = self._principal_point
        _fill_pinhole_tables(
            self._rotation_f32(),
            self._translation_f32(),
            fx,
            fy,
            px,
            py,
            org_c,
            org_w,
            dir_c,
            dir_w,
        )


def _as_pair(value: tuple[float, float], name: str) -> tuple[float, float]:
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.shape != (2,) or not np.all(np.isfinite(arr)):
        raise ConfigurationError(f"{name} must be two finite numbers, got {value!r}")
    return float(arr[0]), float(arr[1])


def _as_focal(value: tuple[float, float]) -> tuple[float, float]:
    fx, fy = _as_pair(value, "focal_length")
    if fx == 0.0 or fy == 0.0:
        raise ConfigurationError(f"focal_length components must be non-zero, got {value!r}")
    return fx, fy
