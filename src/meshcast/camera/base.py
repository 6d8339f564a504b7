"""Camera capability interface shared by the pinhole and orthographic models.

A camera owns its image size, its pose (camera-to-world ``c2w`` and the exact
inverse ``w2c``) and four per-pixel ray tables:

    ray origin in camera space      ray origin in world space
    ray direction in camera space   ray direction in world space

Each table has shape (height, width, 3), dtype float32, and is indexed
``[y, x]``. Mutators only mark the tables dirty; the next read rebuilds all
four in one Taichi kernel launch. Several mutations in a row therefore pay
for a single rebuild, and no read ever observes a stale table.

Every ray query exists in two flavours:
    - continuous: ``ray_origin(x, y)`` / ``ray_direction(x, y)`` accept float
      pixel coordinates (scalars or arrays) and evaluate the formula directly.
    - table lookup: ``ray_origin_at(x, y)`` / ``ray_direction_at(x, y)``
      accept integer pixel coordinates and read the cached tables.
"""

from __future__ import annotations

import abc
from enum import Enum

import numpy as np
import numpy.typing as npt

from meshcast.camera.pose import Pose, as_pose, rigid_inverse
from meshcast.core.errors import ConfigurationError

Table = npt.NDArray[np.float32]


class Frame(Enum):
    """Coordinate frame for ray queries."""

    CAMERA = "camera"
    WORLD = "world"


def validate_size(width: int, height: int) -> tuple[int, int]:
    """Check that an image size is a pair of positive integers.

    Raises:
        ConfigurationError: If either dimension is not a positive integer.
    """
    if int(width) != width or int(height) != height:
        raise ConfigurationError(f"Image size must be integral, got {width}x{height}")
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"Image size must be positive, got {width}x{height}")
    return int(width), int(height)


class Camera(abc.ABC):
    """Base class holding size, pose and the cached ray tables.

    Subclasses implement the projection model and fill the ray tables.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        c2w: Camera-to-world 4x4 pose (copy).
        w2c: World-to-camera 4x4 pose (copy), the exact rigid inverse of c2w.
    """

    def __init__(self, width: int, height: int, c2w: npt.ArrayLike | None = None) -> None:
        self._width, self._height = validate_size(width, height)
        self._c2w: Pose = np.eye(4)
        self._w2c: Pose = np.eye(4)
        self._origin_tables: dict[Frame, Table] = {}
        self._direction_tables: dict[Frame, Table] = {}
        self._dirty = True
        if c2w is not None:
            self.set_c2w(c2w)

    # -------------------------------------------------------------------------
    # Size and pose
    # -------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def c2w(self) -> Pose:
        return self._c2w.copy()

    @property
    def w2c(self) -> Pose:
        return self._w2c.copy()

    @property
    def position(self) -> npt.NDArray[np.float64]:
        """Camera position in world space (translation of c2w)."""
        return self._c2w[:3, 3].copy()

    @property
    def tables_dirty(self) -> bool:
        """True when the ray tables will be rebuilt on the next read."""
        return self._dirty

    def set_size(self, width: int, height: int) -> None:
        """Change the image size.

        Raises:
            ConfigurationError: If either dimension is not positive.
        """
        self._width, self._height = validate_size(width, height)
        self._mark_dirty()

    def set_c2w(self, c2w: npt.ArrayLike) -> None:
        """Set the camera-to-world pose and re-derive its inverse.

        Args:
            c2w: 4x4 or 3x4 rigid transform.

        Raises:
            ConfigurationError: If the matrix is not a rigid transform.
        """
        self._c2w = as_pose(c2w)
        self._w2c = rigid_inverse(self._c2w)
        self._mark_dirty()

    def set_w2c(self, w2c: npt.ArrayLike) -> None:
        """Set the pose from a world-to-camera transform."""
        self.set_c2w(rigid_inverse(as_pose(w2c)))

    def world_to_camera(self, points: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Transform world-space points (..., 3) into camera space."""
        p = np.asarray(points, dtype=np.float64)
        return p @ self._w2c[:3, :3].T + self._w2c[:3, 3]

    def camera_to_world(self, points: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Transform camera-space points (..., 3) into world space."""
        p = np.asarray(points, dtype=np.float64)
        return p @ self._c2w[:3, :3].T + self._c2w[:3, 3]

    # -------------------------------------------------------------------------
    # Projection model (variant specific)
    # -------------------------------------------------------------------------

    @abc.abstractmethod
    def project(self, camera_points: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Project camera-space points (..., 3) to image points (..., 3).

        The last column of the result is the depth channel.
        """

    @abc.abstractmethod
    def unproject(
        self,
        image_points: npt.ArrayLike,
        depth: npt.ArrayLike | None = None,
    ) -> npt.NDArray[np.float64]:
        """Lift image points back to camera space.

        Args:
            image_points: Either (..., 3) points whose last column is depth,
                or (..., 2) pixel coordinates combined with ``depth``.
            depth: Depth per point, required with (..., 2) input.
        """

    @abc.abstractmethod
    def ray_origin(self, x: npt.ArrayLike, y: npt.ArrayLike, frame: Frame | str = Frame.WORLD):
        """Ray origin for continuous pixel coordinates, shape (..., 3)."""

    @abc.abstractmethod
    def ray_direction(self, x: npt.ArrayLike, y: npt.ArrayLike, frame: Frame | str = Frame.WORLD):
        """Unit ray direction for continuous pixel coordinates, shape (..., 3)."""

    @abc.abstractmethod
    def _fill_tables(self, org_c: Table, org_w: Table, dir_c: Table, dir_w: Table) -> None:
        """Write all four ray tables in place."""

    # -------------------------------------------------------------------------
    # Ray tables
    # -------------------------------------------------------------------------

    def ray_origin_at(self, x: npt.ArrayLike, y: npt.ArrayLike, frame: Frame | str = Frame.WORLD):
        """Ray origin for integer pixel coordinates, read from the table."""
        xi, yi = self._check_pixel(x, y)
        return self.ray_origins(frame)[yi, xi].copy()

    def ray_direction_at(self, x: npt.ArrayLike, y: npt.ArrayLike, frame: Frame | str = Frame.WORLD):
        """Ray direction for integer pixel coordinates, read from the table."""
        xi, yi = self._check_pixel(x, y)
        return self.ray_directions(frame)[yi, xi].copy()

    def ray_origins(self, frame: Frame | str = Frame.WORLD) -> Table:
        """Full (height, width, 3) read-only ray origin table."""
        self._ensure_tables()
        return self._origin_tables[Frame(frame)]

    def ray_directions(self, frame: Frame | str = Frame.WORLD) -> Table:
        """Full (height, width, 3) read-only ray direction table."""
        self._ensure_tables()
        return self._direction_tables[Frame(frame)]

    def rebuild_tables(self) -> None:
        """Rebuild the ray tables now instead of on the next read."""
        shape = (self._height, self._width, 3)
        org_c = np.zeros(shape, dtype=np.float32)
        org_w = np.zeros(shape, dtype=np.float32)
        dir_c = np.zeros(shape, dtype=np.float32)
        dir_w = np.zeros(shape, dtype=np.float32)

        self._fill_tables(org_c, org_w, dir_c, dir_w)

        for table in (org_c, org_w, dir_c, dir_w):
            table.setflags(write=False)
        self._origin_tables = {Frame.CAMERA: org_c, Frame.WORLD: org_w}
        self._direction_tables = {Frame.CAMERA: dir_c, Frame.WORLD: dir_w}
        self._dirty = False

    def _ensure_tables(self) -> None:
        if self._dirty:
            self.rebuild_tables()

    def _mark_dirty(self) -> None:
        self._dirty = True
        self._origin_tables = {}
        self._direction_tables = {}

    def _check_pixel(self, x: npt.ArrayLike, y: npt.ArrayLike) -> tuple[np.ndarray, np.ndarray]:
        xi = np.asarray(x)
        yi = np.asarray(y)
        if not (np.issubdtype(xi.dtype, np.integer) and np.issubdtype(yi.dtype, np.integer)):
            raise TypeError("Table lookups take integer pixel coordinates")
        if np.any((xi < 0) | (xi >= self._width) | (yi < 0) | (yi >= self._height)):
            raise IndexError(f"Pixel ({x}, {y}) outside {self._width}x{self._height} image")
        return xi, yi

    # -------------------------------------------------------------------------
    # Shared numeric helpers for subclasses
    # -------------------------------------------------------------------------

    def _rotation_f32(self) -> npt.NDArray[np.float32]:
        return np.ascontiguousarray(self._c2w[:3, :3], dtype=np.float32)

    def _translation_f32(self) -> npt.NDArray[np.float32]:
        return np.ascontiguousarray(self._c2w[:3, 3], dtype=np.float32)


def split_image_points(
    image_points: npt.ArrayLike,
    depth: npt.ArrayLike | None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Split unproject input into x, y and depth arrays.

    Raises:
        ValueError: If the input shape does not match the depth argument.
    """
    p = np.asarray(image_points, dtype=np.float64)
    if depth is None:
        if p.shape[-1] != 3:
            raise ValueError(f"Expected (..., 3) image points with depth, got shape {p.shape}")
        return p[..., 0], p[..., 1], p[..., 2]
    if p.shape[-1] != 2:
        raise ValueError(f"Expected (..., 2) image points with separate depth, got shape {p.shape}")
    d = np.broadcast_to(np.asarray(depth, dtype=np.float64), p.shape[:-1])
    return p[..., 0], p[..., 1], d
