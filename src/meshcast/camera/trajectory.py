"""Read and write camera trajectories in the TUM RGB-D text format.

Each non-comment line holds one camera-to-world pose:

    timestamp tx ty tz qx qy qz qw

Blank lines and lines starting with ``#`` are ignored. The writer emits a
synthetic frame index (0, 1, 2, ...) in the timestamp column.

Example:
    >>> from meshcast.camera.pose import look_at
    >>> from meshcast.camera.trajectory import load_tum, write_tum
    >>> write_tum([look_at((0, 0, -3), (0, 0, 0))], "poses.txt")
    >>> poses = load_tum("poses.txt")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from meshcast.camera.pose import Pose, as_pose, make_pose, quaternion_to_rotation, rotation_to_quaternion
from meshcast.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

_FIELDS_PER_LINE = 8


def _parse_lines(path: str | Path) -> list[tuple[float, Pose]]:
    entries = []
    with open(path, encoding="utf-8") as f:
        for line_no, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split()
            if len(parts) != _FIELDS_PER_LINE:
                raise ConfigurationError(
                    f"{path}:{line_no}: expected {_FIELDS_PER_LINE} values, got {len(parts)}"
                )
            try:
                values = [float(v) for v in parts]
            except ValueError as e:
                raise ConfigurationError(f"{path}:{line_no}: {e}") from e

            timestamp = values[0]
            translation = values[1:4]
            rotation = quaternion_to_rotation(values[4:8])
            entries.append((timestamp, make_pose(rotation, translation)))

    logger.debug("Loaded %d poses from %s", len(entries), path)
    return entries


def load_tum(path: str | Path) -> list[Pose]:
    """Load poses in file order.

    Raises:
        ConfigurationError: If a line is malformed.
        OSError: If the file cannot be read.
    """
    return [pose for _, pose in _parse_lines(path)]


def load_tum_indexed(path: str | Path) -> list[tuple[int, Pose]]:
    """Load ``(frame_index, pose)`` pairs, using the timestamp column as index.

    Timestamps are truncated to integers, which matches files written by
    ``write_tum``.
    """
    return [(int(timestamp), pose) for timestamp, pose in _parse_lines(path)]


def write_tum(poses: Iterable, path: str | Path) -> None:
    """Write poses with an incrementing index starting at 0.

    Args:
        poses: Iterable of 4x4 (or 3x4) camera-to-world matrices.
        path: Output file path.
    """
    lines = []
    for index, pose in enumerate(poses):
        m = as_pose(pose)
        t = m[:3, 3]
        q = rotation_to_quaternion(m[:3, :3])
        values = [t[0], t[1], t[2], q[0], q[1], q[2], q[3]]
        lines.append(f"{index} " + " ".join(repr(float(v)) for v in values))

    Path(path).write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
    logger.debug("Wrote %d poses to %s", len(lines), path)
