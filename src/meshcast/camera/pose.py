"""Rigid pose helpers for camera extrinsics.

Poses are 4x4 float64 homogeneous matrices. A camera pose is the
camera-to-world transform (``c2w``): its rotation columns are the camera's
x (right), y (down) and z (forward) axes expressed in world coordinates, and
its translation is the camera position. This is the OpenCV convention.

Quaternions follow the TUM trajectory ordering ``(qx, qy, qz, qw)``.

Example:
    >>> import numpy as np
    >>> from meshcast.camera.pose import look_at, rigid_inverse
    >>> c2w = look_at(eye=(0.0, 0.0, -3.0), target=(0.0, 0.0, 0.0), up=(0.0, -1.0, 0.0))
    >>> w2c = rigid_inverse(c2w)
    >>> np.allclose(w2c @ c2w, np.eye(4))
    True
"""

import numpy as np
import numpy.typing as npt
from scipy.spatial.transform import Rotation

from meshcast.core.errors import ConfigurationError

# Tolerance for accepting a rotation block as orthonormal
ROTATION_TOLERANCE = 1e-5

Pose = npt.NDArray[np.float64]


def make_pose(
    rotation: npt.ArrayLike | None = None,
    translation: npt.ArrayLike | None = None,
) -> Pose:
    """Build a 4x4 pose from a 3x3 rotation and a translation vector.

    Args:
        rotation: 3x3 rotation matrix. Identity when omitted.
        translation: Translation (x, y, z). Zero when omitted.

    Returns:
        The validated 4x4 pose.
    """
    pose = np.eye(4, dtype=np.float64)
    if rotation is not None:
        pose[:3, :3] = np.asarray(rotation, dtype=np.float64)
    if translation is not None:
        pose[:3, 3] = np.asarray(translation, dtype=np.float64).reshape(3)
    return as_pose(pose)


def as_pose(matrix: npt.ArrayLike) -> Pose:
    """Validate and copy a rigid transform into a 4x4 float64 matrix.

    Accepts 4x4 homogeneous matrices or 3x4 ``[R | t]`` blocks.

    Raises:
        ConfigurationError: If the shape is wrong, the matrix contains
            non-finite values, or the rotation block is not a proper
            orthonormal rotation.
    """
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape == (3, 4):
        m = np.vstack([m, [0.0, 0.0, 0.0, 1.0]])
    if m.shape != (4, 4):
        raise ConfigurationError(f"Pose must be 4x4 or 3x4, got shape {m.shape}")
    if not np.all(np.isfinite(m)):
        raise ConfigurationError("Pose contains non-finite values")
    if not np.allclose(m[3], [0.0, 0.0, 0.0, 1.0]):
        raise ConfigurationError(f"Pose bottom row must be [0, 0, 0, 1], got {m[3].tolist()}")

    rotation = m[:3, :3]
    if not np.allclose(rotation.T @ rotation, np.eye(3), atol=ROTATION_TOLERANCE):
        raise ConfigurationError("Pose rotation block is not orthonormal")
    if abs(np.linalg.det(rotation) - 1.0) > ROTATION_TOLERANCE:
        raise ConfigurationError("Pose rotation block is a reflection")
    return m.copy()


def rigid_inverse(pose: Pose) -> Pose:
    """Invert a rigid transform exactly: ``[R | t]^-1 = [R^T | -R^T t]``."""
    rotation_t = pose[:3, :3].T
    inverse = np.eye(4, dtype=np.float64)
    inverse[:3, :3] = rotation_t
    inverse[:3, 3] = -rotation_t @ pose[:3, 3]
    return inverse


def look_at(
    eye: tuple[float, float, float],
    target: tuple[float, float, float],
    up: tuple[float, float, float] = (0.0, -1.0, 0.0),
) -> Pose:
    """Build a camera-to-world pose looking from ``eye`` toward ``target``.

    The camera z axis points from eye to target and the camera y axis
    (image down) is the component of ``-up`` orthogonal to it, so ``up`` is
    the world direction that appears at the top of the image. The default
    ``up`` of -y keeps an identity rotation for a camera looking down +z.

    Args:
        eye: Camera position in world space.
        target: Point the camera looks at.
        up: World direction that should point up in the image.

    Raises:
        ConfigurationError: If eye and target coincide or ``up`` is parallel
            to the viewing direction.
    """
    eye_v = np.asarray(eye, dtype=np.float64)
    forward = np.asarray(target, dtype=np.float64) - eye_v
    norm = np.linalg.norm(forward)
    if norm < 1e-12:
        raise ConfigurationError("look_at eye and target coincide")
    z_axis = forward / norm

    down = -np.asarray(up, dtype=np.float64)
    x_axis = np.cross(down, z_axis)
    x_norm = np.linalg.norm(x_axis)
    if x_norm < 1e-12:
        raise ConfigurationError("look_at up vector is parallel to the viewing direction")
    x_axis = x_axis / x_norm
    y_axis = np.cross(z_axis, x_axis)

    rotation = np.column_stack([x_axis, y_axis, z_axis])
    return make_pose(rotation, eye_v)


def quaternion_to_rotation(q: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Convert a quaternion ``(qx, qy, qz, qw)`` to a 3x3 rotation matrix.

    The quaternion is normalized first.

    Raises:
        ConfigurationError: If the quaternion has zero length.
    """
    quat = np.asarray(q, dtype=np.float64).reshape(4)
    if np.linalg.norm(quat) < 1e-12:
        raise ConfigurationError("Quaternion has zero length")
    return Rotation.from_quat(quat).as_matrix()


def rotation_to_quaternion(rotation: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Convert a 3x3 rotation matrix to a unit quaternion ``(qx, qy, qz, qw)``.

    The returned quaternion has ``qw >= 0``.
    """
    q = Rotation.from_matrix(np.asarray(rotation, dtype=np.float64)).as_quat()
    if q[3] < 0.0:
        q = -q
    return q
