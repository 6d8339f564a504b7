#!/usr/bin/env python3
"""Render a mesh from one or more camera poses.

Loads a mesh with trimesh, builds the accelerator once, then renders color,
depth and mask PNGs for every pose of a TUM trajectory (or a single look-at
pose in front of the mesh when no trajectory is given).

Usage:
    python examples/render_mesh.py MESH [options]

Options:
    --width WIDTH           Image width in pixels (default: 640)
    --height HEIGHT         Image height in pixels (default: 480)
    --fov-y DEGREES         Vertical field of view (default: 45)
    --ortho                 Use an orthographic camera
    --trajectory FILE       TUM pose file (timestamp tx ty tz qx qy qz qw)
    --depth-scale SCALE     Depth multiplier before 16-bit quantization (default: 1000)
    --vertex-color          Shade with per-vertex colors
    --nn                    Nearest-vertex colors instead of bilinear blending
    --no-culling            Keep back-facing hits
    --output DIR            Output directory (default: render_out)
    --quiet                 Suppress progress output

Example:
    python examples/render_mesh.py bunny.ply --vertex-color --trajectory poses.txt
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import numpy as np
import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render color, depth and mask images of a mesh.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("mesh", type=str, help="Mesh file readable by trimesh")
    parser.add_argument("--width", type=int, default=640, help="Image width in pixels (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Image height in pixels (default: 480)")
    parser.add_argument("--fov-y", type=float, default=45.0, help="Vertical field of view (default: 45)")
    parser.add_argument("--ortho", action="store_true", help="Use an orthographic camera")
    parser.add_argument("--trajectory", type=str, default=None, help="TUM pose file")
    parser.add_argument(
        "--depth-scale",
        type=float,
        default=1000.0,
        help="Depth multiplier before 16-bit quantization (default: 1000)",
    )
    parser.add_argument("--vertex-color", action="store_true", help="Shade with per-vertex colors")
    parser.add_argument("--nn", action="store_true", help="Nearest-vertex colors")
    parser.add_argument("--no-culling", action="store_true", help="Keep back-facing hits")
    parser.add_argument("--output", type=str, default="render_out", help="Output directory")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def default_pose(vertices: np.ndarray, fov_y: float) -> np.ndarray:
    """Look-at pose that frames the mesh bounding sphere from -z."""
    from meshcast.camera.pose import look_at

    center = (vertices.min(axis=0) + vertices.max(axis=0)) * 0.5
    radius = float(np.linalg.norm(vertices - center, axis=1).max())
    distance = radius / np.tan(np.radians(fov_y) * 0.5) * 1.1
    eye = center - np.array([0.0, 0.0, distance])
    return look_at(tuple(eye), tuple(center))


def render_mesh(args: argparse.Namespace) -> list[Path]:
    """Render every pose and return the written file paths."""
    # Lazy imports to allow Taichi initialization first
    from meshcast.camera.ortho import OrthoCamera
    from meshcast.camera.pinhole import PinholeCamera
    from meshcast.camera.trajectory import load_tum_indexed
    from meshcast.core.options import ColorInterpolation, RenderOptions
    from meshcast.core.renderer import Renderer
    from meshcast.core.sequence import render_trajectory
    from meshcast.geometry.mesh import load_mesh
    from meshcast.preview.export import save_result

    mesh = load_mesh(args.mesh)
    if not args.quiet:
        print(f"Loaded {args.mesh}: {mesh.num_vertices} vertices, {mesh.num_faces} faces")

    options = RenderOptions(
        use_vertex_color=args.vertex_color,
        depth_scale=args.depth_scale,
        interp=ColorInterpolation.NN if args.nn else ColorInterpolation.BILINEAR,
        backface_culling=not args.no_culling,
    )
    renderer = Renderer(options)
    renderer.set_mesh(mesh)

    start_time = time.time()
    renderer.prepare_mesh()
    if not args.quiet:
        print(f"Built accelerator in {time.time() - start_time:.2f}s")

    if args.ortho:
        camera = OrthoCamera(args.width, args.height)
    else:
        camera = PinholeCamera(args.width, args.height, fov_y=args.fov_y)

    if args.trajectory:
        poses = load_tum_indexed(args.trajectory)
    else:
        poses = [(0, default_pose(np.asarray(mesh.vertices), args.fov_y))]

    written: list[Path] = []
    for index, result in render_trajectory(renderer, camera, poses):
        if not result.ok:
            print(f"Frame {index}: render failed ({result.status.value})", file=sys.stderr)
            continue
        paths = save_result(result, args.output, f"{index:05d}")
        written.extend(paths.values())
        if not args.quiet:
            coverage = np.count_nonzero(result.mask) / result.mask.size * 100
            print(f"  Frame {index}: {coverage:.1f}% coverage -> {paths['color'].parent}")

    if not args.quiet:
        print(f"Rendered {len(poses)} frame(s) in {time.time() - start_time:.2f}s")
    return written


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
    except Exception:
        ti.init(arch=ti.cpu)

    try:
        render_mesh(args)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
