"""Camera module for projection and per-pixel ray generation.

Components:
    base: Camera capability interface, ray tables, coordinate frames
    pinhole: Perspective camera with pixel-scale intrinsics
    ortho: Orthographic camera with parallel rays
    pose: Rigid transforms, look-at and quaternion conversion
    trajectory: TUM text format reader/writer

Coordinate convention (same as OpenCV):
    x: right, y: down, z: forward
    pixel (x, y) is column x, row y; ray tables are indexed [y, x]

Ray tables are generated in Taichi kernels, so ``ti.init`` must have been
called before the first table read.
"""

from .base import Camera, Frame
from .ortho import OrthoCamera
from .pinhole import PinholeCamera, focal_from_fov
from .pose import (
    as_pose,
    look_at,
    make_pose,
    quaternion_to_rotation,
    rigid_inverse,
    rotation_to_quaternion,
)
from .trajectory import load_tum, load_tum_indexed, write_tum

__all__ = [
    "Camera",
    "Frame",
    "PinholeCamera",
    "OrthoCamera",
    "focal_from_fov",
    "as_pose",
    "make_pose",
    "look_at",
    "rigid_inverse",
    "quaternion_to_rotation",
    "rotation_to_quaternion",
    "load_tum",
    "load_tum_indexed",
    "write_tum",
]
