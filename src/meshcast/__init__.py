"""Ray-casting mesh renderer for synthetic color, depth and mask images.

This package renders a triangle mesh seen by a pinhole or orthographic camera
by casting one ray per pixel, with exact, reproducible camera geometry:
- Projection, unprojection and per-pixel ray tables for both camera models
- Nearest-hit queries through a trimesh/rtree accelerator
- Taichi kernels for ray table generation and per-pixel shading
- Vertex color interpolation, back-face culling, 16-bit depth output

Subpackages:
    camera: Camera models, poses and TUM trajectories
    core: Render options, errors, shading kernel and the Renderer
    geometry: Read-only mesh container and mesh loading
    scene: Ray-mesh intersection provider
    preview: PNG export and depth visualisation
"""

__version__ = "0.1.0"
