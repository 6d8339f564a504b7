"""Orthographic camera model with parallel rays.

Image coordinates are translated camera coordinates: project and unproject
are the identity on x and y, and depth passes through unchanged.

Each pixel's ray starts at its own point on the image plane,
``(x - width / 2, y - height / 2, 0)`` in camera space, and every ray travels
along the camera z axis. One pixel therefore covers one world unit.
"""

import numpy as np
import numpy.typing as npt
import taichi as ti

from meshcast.camera.base import Camera, Frame, Table, split_image_points


@ti.kernel
def _fill_ortho_tables(
    rotation: ti.types.ndarray(dtype=ti.f32, ndim=2),
    translation: ti.types.ndarray(dtype=ti.f32, ndim=1),
    half_width: ti.f32,
    half_height: ti.f32,
    org_c: ti.types.ndarray(dtype=ti.f32, ndim=3),
    org_w: ti.types.ndarray(dtype=ti.f32, ndim=3),
    dir_c: ti.types.ndarray(dtype=ti.f32, ndim=3),
    dir_w: ti.types.ndarray(dtype=ti.f32, ndim=3),
):
    for y, x in ti.ndrange(org_c.shape[0], org_c.shape[1]):
        ox = x - half_width
        oy = y - half_height
        org_c[y, x, 0] = ox
        org_c[y, x, 1] = oy
        org_c[y, x, 2] = 0.0
        dir_c[y, x, 0] = 0.0
        dir_c[y, x, 1] = 0.0
        dir_c[y, x, 2] = 1.0
        for k in ti.static(range(3)):
            org_w[y, x, k] = translation[k] + ox * rotation[k, 0] + oy * rotation[k, 1]
            dir_w[y, x, k] = rotation[k, 2]


class OrthoCamera(Camera):
    """Orthographic projection camera. Needs no intrinsics."""

    def __repr__(self) -> str:
        return f"OrthoCamera(width={self.width}, height={self.height})"

    def project(self, camera_points: npt.ArrayLike) -> npt.NDArray[np.float64]:
        return np.array(camera_points, dtype=np.float64)

    def unproject(
        self,
        image_points: npt.ArrayLike,
        depth: npt.ArrayLike | None = None,
    ) -> npt.NDArray[np.float64]:
        x, y, d = split_image_points(image_points, depth)
        return np.stack([x, y, d], axis=-1)

    def ray_origin(self, x, y, frame=Frame.WORLD):
        xs, ys = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        ox = xs - self._width * 0.5
        oy = ys - self._height * 0.5
        if Frame(frame) is Frame.CAMERA:
            return np.stack([ox, oy, np.zeros_like(ox)], axis=-1)
        rotation = self._c2w[:3, :3]
        return self._c2w[:3, 3] + ox[..., None] * rotation[:, 0] + oy[..., None] * rotation[:, 1]

    def ray_direction(self, x, y, frame=Frame.WORLD):
        xs, _ = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        if Frame(frame) is Frame.CAMERA:
            axis = np.array([0.0, 0.0, 1.0])
        else:
            axis = self._c2w[:3, 2]
        return np.broadcast_to(axis, xs.shape + (3,)).copy()

    def _fill_tables(self, org_c: Table, org_w: Table, dir_c: Table, dir_w: Table) -> None:
        _fill_ortho_tables(
            self._rotation_f32(),
            self._translation_f32(),
            self._width * 0.5,
            self._height * 0.5,
            org_c,
            org_w,
            dir_c,
            dir_w,
        )
