"""Geometry module for mesh data.

Components:
    mesh: Read-only triangle mesh container, flattening and file loading

Meshes are plain NumPy arrays on the Python side. They are flattened into
contiguous float32/int32 buffers when a renderer prepares its accelerator.
"""

from .mesh import Mesh, load_mesh

__all__ = [
    "Mesh",
    "load_mesh",
]
