"""Render a camera along a trajectory of poses.

The accelerator is built once by ``Renderer.prepare_mesh``; each pose only
moves the camera (rebuilding its ray tables) before the next render.

Example:
    >>> from meshcast.camera.trajectory import load_tum_indexed
    >>> from meshcast.core.sequence import render_trajectory
    >>> for index, result in render_trajectory(renderer, camera, load_tum_indexed("poses.txt")):
    ...     save_result(result, "out", f"{index:05d}")
"""

from __future__ import annotations

from collections.abc import Generator, Iterable

import numpy as np

from meshcast.camera.base import Camera
from meshcast.core.options import RenderOptions
from meshcast.core.renderer import Renderer, RenderResult


def render_trajectory(
    renderer: Renderer,
    camera: Camera,
    poses: Iterable,
    options: RenderOptions | None = None,
) -> Generator[tuple[int, RenderResult], None, None]:
    """Render one frame per pose, yielding ``(frame_index, result)``.

    Args:
        renderer: A renderer whose mesh has been prepared.
        camera: Camera to move along the trajectory. Its pose is updated in
            place, so after the loop it holds the last pose.
        poses: Either 4x4 camera-to-world matrices, indexed 0, 1, 2, ..., or
            ``(frame_index, pose)`` pairs as returned by ``load_tum_indexed``.
        options: Options for every frame. Defaults to the renderer's options.

    Yields:
        Tuple of (frame_index, RenderResult).
    """
    for position, entry in enumerate(poses):
        if isinstance(entry, tuple) and len(entry) == 2:
            index, pose = int(entry[0]), entry[1]
        else:
            index, pose = position, entry
        camera.set_c2w(np.asarray(pose))
        yield index, renderer.render(camera, options)
