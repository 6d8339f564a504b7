"""Nearest-hit ray queries against a triangle mesh.

The renderer talks to its spatial index through the ``IntersectionProvider``
protocol: build once from flattened vertex/index buffers, then answer
nearest-hit queries for single rays or whole batches.

``TriangleIntersector`` is the default provider. It wraps trimesh's
``RayMeshIntersector``, which narrows candidate triangles with an R-tree
over triangle bounds (``rtree``) before the exact ray-triangle test. Queries
only read the prepared arrays and tree, so one intersector can serve any
number of renders.

Barycentric coordinates follow the convention

    hit_point = (1 - u - v) * v0 + u * v1 + v * v2

Example:
    >>> import numpy as np
    >>> from meshcast.scene.intersection import TriangleIntersector
    >>> intersector = TriangleIntersector()
    >>> intersector.build(
    ...     np.array([0, 0, 1, 0, 1, 1, 1, 0, 1], dtype=np.float32),
    ...     np.array([0, 1, 2], dtype=np.int32),
    ... )
    >>> hit = intersector.nearest_hit((0.2, 0.2, 0.0), (0.0, 0.0, 1.0))
    >>> hit.face_id, round(hit.distance, 6)
    (0, 1.0)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np
import numpy.typing as npt
import trimesh
from trimesh.ray.ray_triangle import RayMeshIntersector
from trimesh.triangles import points_to_barycentric

from meshcast.core.errors import ConfigurationError, PreconditionError

logger = logging.getLogger(__name__)

# Hits closer than this along the ray are ignored (strictly positive distance)
T_MIN = 1e-6

# Face id reported for rays that hit nothing
MISS = -1


@dataclass(frozen=True)
class Hit:
    """Nearest intersection along a single ray.

    Attributes:
        face_id: Index of the hit triangle.
        u: Barycentric weight of the triangle's second vertex.
        v: Barycentric weight of the triangle's third vertex.
        distance: Distance from the ray origin along the unit direction.
    """

    face_id: int
    u: float
    v: float
    distance: float


@dataclass
class HitBatch:
    """Nearest intersections for a batch of rays.

    Misses have ``face_id == MISS`` and zero u, v and distance.
    """

    face_ids: npt.NDArray[np.int64]
    u: npt.NDArray[np.float64]
    v: npt.NDArray[np.float64]
    distances: npt.NDArray[np.float64]

    def __len__(self) -> int:
        return len(self.face_ids)

    @property
    def hit_mask(self) -> npt.NDArray[np.bool_]:
        return self.face_ids != MISS

    def __getitem__(self, index: int) -> Hit | None:
        if self.face_ids[index] == MISS:
            return None
        return Hit(
            face_id=int(self.face_ids[index]),
            u=float(self.u[index]),
            v=float(self.v[index]),
            distance=float(self.distances[index]),
        )


class IntersectionProvider(Protocol):
    """Spatial index built once and queried read-only afterwards."""

    @property
    def built(self) -> bool: ...

    def build(self, vertices: npt.ArrayLike, faces: npt.ArrayLike) -> None: ...

    def nearest_hit(self, origin: npt.ArrayLike, direction: npt.ArrayLike) -> Hit | None: ...

    def nearest_hits(self, origins: npt.ArrayLike, directions: npt.ArrayLike) -> HitBatch: ...


class TriangleIntersector:
    """trimesh/rtree backed implementation of ``IntersectionProvider``.

    Args:
        t_min: Minimum accepted hit distance.
    """

    def __init__(self, t_min: float = T_MIN) -> None:
        self._t_min = t_min
        self._mesh: trimesh.Trimesh | None = None
        self._intersector: RayMeshIntersector | None = None

    @property
    def built(self) -> bool:
        return self._intersector is not None

    def build(self, vertices: npt.ArrayLike, faces: npt.ArrayLike) -> None:
        """Build the accelerator from flattened buffers.

        Args:
            vertices: Vertex positions, flat (N * 3,) or (N, 3).
            faces: Triangle indices, flat (F * 3,) or (F, 3).

        Raises:
            ConfigurationError: If there are no vertices or no faces.
        """
        v = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        f = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
        if len(v) == 0 or len(f) == 0:
            raise ConfigurationError(
                f"Cannot build accelerator from {len(v)} vertices and {len(f)} faces"
            )

        mesh = trimesh.Trimesh(vertices=v, faces=f, process=False, validate=False)
        intersector = RayMeshIntersector(mesh)
        # Build the triangle tree now so queries never mutate shared caches
        _ = mesh.triangles
        _ = mesh.triangles_tree

        self._mesh = mesh
        self._intersector = intersector
        logger.debug("Built triangle accelerator: %d vertices, %d faces", len(v), len(f))

    def nearest_hit(self, origin: npt.ArrayLike, direction: npt.ArrayLike) -> Hit | None:
        """Nearest positive-distance hit along one ray, or None on a miss."""
        batch = self.nearest_hits(
            np.asarray(origin, dtype=np.float64).reshape(1, 3),
            np.asarray(direction, dtype=np.float64).reshape(1, 3),
        )
        return batch[0]

    def nearest_hits(self, origins: npt.ArrayLike, directions: npt.ArrayLike) -> HitBatch:
        """Nearest positive-distance hit for each ray of a batch.

        Args:
            origins: Ray origins, shape (R, 3).
            directions: Ray directions, shape (R, 3). Need not be unit length
                but must be non-zero.

        Raises:
            PreconditionError: If ``build`` has not been called.
        """
        if self._intersector is None or self._mesh is None:
            raise PreconditionError("Accelerator not built. Call build() first.")

        o = np.asarray(origins, dtype=np.float64).reshape(-1, 3)
        d = np.asarray(directions, dtype=np.float64).reshape(-1, 3)
        d = d / np.linalg.norm(d, axis=1, keepdims=True)

        n_rays = len(o)
        face_ids = np.full(n_rays, MISS, dtype=np.int64)
        u = np.zeros(n_rays, dtype=np.float64)
        v = np.zeros(n_rays, dtype=np.float64)
        distances = np.zeros(n_rays, dtype=np.float64)
        if n_rays == 0:
            return HitBatch(face_ids, u, v, distances)

        # All hits per ray; nearest selection happens below so hits behind the
        # origin can never shadow a valid one
        index_tri, index_ray, locations = self._intersector.intersects_id(
            ray_origins=o,
            ray_directions=d,
            multiple_hits=True,
            return_locations=True,
        )
        if len(index_tri) == 0:
            return HitBatch(face_ids, u, v, distances)

        index_tri = np.asarray(index_tri, dtype=np.int64)
        index_ray = np.asarray(index_ray, dtype=np.int64)
        locations = np.asarray(locations, dtype=np.float64)

        t = np.einsum("ij,ij->i", locations - o[index_ray], d[index_ray])
        valid = np.isfinite(t) & (t > self._t_min)
        index_tri, index_ray, locations, t = (
            index_tri[valid],
            index_ray[valid],
            locations[valid],
            t[valid],
        )
        if len(t) == 0:
            return HitBatch(face_ids, u, v, distances)

        # Sort by ray then distance, keep the first entry of every ray
        order = np.lexsort((t, index_ray))
        sorted_rays = index_ray[order]
        first = np.ones(len(order), dtype=bool)
        first[1:] = sorted_rays[1:] != sorted_rays[:-1]
        nearest = order[first]

        rays = index_ray[nearest]
        tris = index_tri[nearest]
        bary = points_to_barycentric(self._mesh.triangles[tris], locations[nearest])

        face_ids[rays] = tris
        u[rays] = bary[:, 1]
        v[rays] = bary[:, 2]
        distances[rays] = t[nearest]
        return HitBatch(face_ids, u, v, distances)
