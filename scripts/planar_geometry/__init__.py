"""
Planar Geometry Module

Spatial indexing and hull extraction for 2D point sets: a KD-tree with
nearest, k-nearest and range queries, convex and concave hulls, segment
intersection and Douglas-Peucker polyline reduction.
"""

from .types import (
    Point,
    Topology,
    ConvexHullOptions,
    ConcaveHullOptions,
    ConcaveHull,
    HullStatus,
    StaleViewError,
)
from .point_cloud import PointCloud, TopologicalPointCloud
from .spatial_index import SpatialIndex
from .hull import convex_hull, concave_hull
from .intersection import intersect, path_intersects, path_intersections
from .simplify import reduce_points, reduce_ids
from .primitives import distance_point_line, point_in_polygon, turn


__all__ = [
    "Point",
    "Topology",
    "ConvexHullOptions",
    "ConcaveHullOptions",
    "ConcaveHull",
    "HullStatus",
    "StaleViewError",
    "PointCloud",
    "TopologicalPointCloud",
    "SpatialIndex",
    "convex_hull",
    "concave_hull",
    "intersect",
    "path_intersects",
    "path_intersections",
    "reduce_points",
    "reduce_ids",
    "distance_point_line",
    "point_in_polygon",
    "turn",
]
