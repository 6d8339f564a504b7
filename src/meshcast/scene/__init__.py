"""Scene module for ray-mesh intersection.

Components:
    intersection: IntersectionProvider protocol and the trimesh/rtree
        backed TriangleIntersector

The renderer builds one provider per prepared mesh and only issues
read-only nearest-hit queries afterwards.
"""

from .intersection import (
    MISS,
    T_MIN,
    Hit,
    HitBatch,
    IntersectionProvider,
    TriangleIntersector,
)

__all__ = [
    "Hit",
    "HitBatch",
    "IntersectionProvider",
    "TriangleIntersector",
    "MISS",
    "T_MIN",
]
