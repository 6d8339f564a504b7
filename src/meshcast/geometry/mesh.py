"""Read-only triangle mesh container.

A ``Mesh`` holds vertex positions, triangle index triples and optional
per-vertex colors and normals. All arrays are copied on construction and
marked read-only, so a mesh can be shared between renderers and stays
unchanged for as long as a prepared accelerator refers to it.

Mesh files are parsed with trimesh; any format trimesh can load works.

Example:
    >>> from meshcast.geometry.mesh import Mesh
    >>> mesh = Mesh(
    ...     vertices=[[0, 0, 1], [0, 1, 1], [1, 0, 1]],
    ...     faces=[[0, 1, 2]],
    ...     vertex_colors=[[255, 0, 0], [0, 255, 0], [0, 0, 255]],
    ... )
    >>> mesh.num_faces
    1
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import trimesh

from meshcast.core.errors import ConfigurationError

if TYPE_CHECKING:
    from trimesh import Trimesh


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.ascontiguousarray(array)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Mesh:
    """Triangle mesh with optional per-vertex attributes.

    Attributes:
        vertices: Vertex positions, shape (N, 3), float64.
        faces: Triangle vertex indices, shape (F, 3), int64.
        vertex_colors: Optional RGB colors in [0, 255], shape (N, 3), float32.
        vertex_normals: Optional vertex normals, shape (N, 3), float64.
    """

    vertices: npt.NDArray[np.float64]
    faces: npt.NDArray[np.int64]
    vertex_colors: npt.NDArray[np.float32] | None = None
    vertex_normals: npt.NDArray[np.float64] | None = None

    def __post_init__(self) -> None:
        vertices = np.array(self.vertices, dtype=np.float64, copy=True).reshape(-1, 3)
        faces = np.array(self.faces, dtype=np.int64, copy=True).reshape(-1, 3)
        if faces.size and (faces.min() < 0 or faces.max() >= len(vertices)):
            raise ConfigurationError(
                f"Face indices must be in [0, {len(vertices)}), "
                f"got range [{faces.min()}, {faces.max()}]"
            )
        object.__setattr__(self, "vertices", _frozen(vertices))
        object.__setattr__(self, "faces", _frozen(faces))

        for name, dtype in (("vertex_colors", np.float32), ("vertex_normals", np.float64)):
            value = getattr(self, name)
            if value is None:
                continue
            attr = np.array(value, dtype=dtype, copy=True)
            if attr.shape != vertices.shape:
                raise ConfigurationError(
                    f"{name} must have shape {vertices.shape}, got {attr.shape}"
                )
            object.__setattr__(self, name, _frozen(attr))

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    @property
    def has_vertex_colors(self) -> bool:
        return self.vertex_colors is not None

    @property
    def triangles(self) -> npt.NDArray[np.float64]:
        """Vertex positions per face, shape (F, 3, 3)."""
        return self.vertices[self.faces]

    def face_normals(self) -> npt.NDArray[np.float64]:
        """Unit face normals by the right-hand rule ``(v1 - v0) x (v2 - v0)``.

        Degenerate faces get a zero normal.
        """
        tri = self.triangles
        n = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
        length = np.linalg.norm(n, axis=1, keepdims=True)
        return np.divide(n, length, out=np.zeros_like(n), where=length > 0)

    def flatten(self) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.int32]]:
        """Contiguous float32 positions (N * 3,) and int32 indices (F * 3,)."""
        return (
            np.ascontiguousarray(self.vertices, dtype=np.float32).reshape(-1),
            np.ascontiguousarray(self.faces, dtype=np.int32).reshape(-1),
        )

    @classmethod
    def from_trimesh(cls, mesh: Trimesh) -> Mesh:
        """Build a mesh from a ``trimesh.Trimesh``, keeping vertex colors if present."""
        colors = None
        if mesh.visual.kind == "vertex":
            colors = np.asarray(mesh.visual.vertex_colors)[:, :3]

        # trimesh returns file normals when present, area-weighted ones otherwise
        normals = np.asarray(mesh.vertex_normals) if len(mesh.faces) else None

        return cls(
            vertices=np.asarray(mesh.vertices),
            faces=np.asarray(mesh.faces),
            vertex_colors=colors,
            vertex_normals=normals,
        )

    def to_trimesh(self) -> Trimesh:
        """Convert to ``trimesh.Trimesh`` without merging or reordering vertices."""
        kwargs = {}
        if self.vertex_colors is not None:
            kwargs["vertex_colors"] = np.clip(self.vertex_colors, 0, 255).astype(np.uint8)
        return trimesh.Trimesh(
            vertices=np.array(self.vertices),
            faces=np.array(self.faces),
            process=False,
            **kwargs,
        )


def load_mesh(path: str | Path) -> Mesh:
    """Load a mesh file with trimesh.

    Scenes with several geometries are concatenated into one mesh. Vertices
    are kept in file order so vertex colors stay aligned.

    Raises:
        ConfigurationError: If the file holds no triangles.
    """
    loaded = trimesh.load(str(path), force="mesh", process=False)
    if not isinstance(loaded, trimesh.Trimesh):
        raise ConfigurationError(f"{path} does not contain a triangle mesh")
    return Mesh.from_trimesh(loaded)
