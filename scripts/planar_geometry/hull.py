"""
Hull extraction.

convex_hull() implements Andrew's monotone chain. concave_hull() walks
the boundary by gift wrapping restricted to each vertex's k nearest
neighbours, found through a SpatialIndex.

Both return ids into the caller's cloud (as a TopologicalPointCloud)
rather than copies of the coordinates.
"""

import logging
import math
from typing import Optional, Union

from .types import (
    ConcaveHull,
    ConcaveHullOptions,
    ConvexHullOptions,
    HullStatus,
    Point,
)
from .point_cloud import PointCloud, TopologicalPointCloud
from .primitives import ccw, ccw_angle, direction, point_in_polygon
from .intersection import intersect
from .spatial_index import SpatialIndex


logger = logging.getLogger(__name__)


CloudLike = Union[PointCloud, TopologicalPointCloud]


def _as_view(cloud: CloudLike) -> TopologicalPointCloud:
    if isinstance(cloud, TopologicalPointCloud):
        return cloud
    return TopologicalPointCloud(cloud)


def _monotone_chain(ids: list[int], points: list[Point]) -> list[int]:
    """One half of the hull; pops while the last turn is not strictly counter-clockwise."""
    chain: list[int] = []
    for pid in ids:
        while len(chain) >= 2 and ccw(points[chain[-2]], points[chain[-1]], points[pid]) <= 0:
            chain.pop()
        chain.append(pid)
    return chain


def convex_hull(
    cloud: CloudLike,
    options: Optional[ConvexHullOptions] = None,
) -> TopologicalPointCloud:
    """
    Convex hull by Andrew's monotone chain.

    Points are sorted by (x, y); the lower chain is built left to right and
    the upper chain right to left. Collinear boundary points are dropped.

    Args:
        cloud: Cloud or view to wrap
        options: Hull options, ConvexHullOptions() by default

    Returns:
        View over the same backing cloud listing the hull vertices
        counter-clockwise from the lexicographically smallest point, closed
        by repeating the first id if options.close_path. Inputs with fewer
        than two points are returned unchanged.
    """
    options = options or ConvexHullOptions()
    view = _as_view(cloud)
    if len(view) < 2:
        return view

    ids = list(view.sorted_xy().ids)
    points = view.parent.points()

    lower = _monotone_chain(ids, points)
    upper = _monotone_chain(ids[::-1], points)

    hull: list[int] = []
    seen: set[Point] = set()
    for pid in lower + upper:
        if points[pid] not in seen:
            seen.add(points[pid])
            hull.append(pid)

    if options.close_path:
        hull.append(hull[0])

    return TopologicalPointCloud(view.parent, hull)


def _crosses_hull(hull: list[int], current: int, candidate: int, points: list[Point]) -> bool:
    """Check whether edge current -> candidate crosses a non-adjacent hull edge."""
    a, b = points[current], points[candidate]
    for i in range(len(hull) - 1):
        e1, e2 = hull[i], hull[i + 1]
        if e1 in (current, candidate) or e2 in (current, candidate):
            continue
        if intersect(a, b, points[e1], points[e2]) is not None:
            return True
    return False


def _next_vertex(
    index: SpatialIndex,
    points: list[Point],
    hull: list[int],
    in_hull: set[int],
    previous: Point,
    current: int,
    start: int,
    k: int,
) -> Optional[int]:
    """
    Pick the next hull vertex among the k nearest neighbours of current.

    Ranking, best first:
      a) candidates not yet on the hull and whose edge does not cross the
         hull so far; the start id may close the loop once the hull holds
         at least three vertices
      b) the most clockwise turn relative to the previous edge, i.e. the
         smallest counter-clockwise angle from the reversed previous edge
      c) the smaller distance to the current point

    Returns:
        The winning id, or None if only invalid candidates remain
    """
    here = points[current]
    back = direction(here, previous)

    ranked = []
    for pid in index.k_nearest(here, k).ids():
        p = points[pid]
        # Coincident points would make zero-length edges.
        if pid == current or p == here or (pid != start and p == points[start]):
            continue
        angle = ccw_angle(back, direction(here, p))
        if angle == 0.0:
            # Straight back along the previous edge.
            angle = 2.0 * math.pi
        ranked.append((angle, here.sqr_distance_to(p), pid))
    ranked.sort()

    for _, _, pid in ranked:
        if pid in in_hull and (pid != start or len(hull) < 3):
            continue
        if _crosses_hull(hull, current, pid, points):
            continue
        return pid
    return None


def concave_hull(cloud: CloudLike, options: ConcaveHullOptions) -> ConcaveHull:
    """
    Concave hull by k-nearest gift wrapping.

    The walk starts at the lowest-x point (lowest y on ties) with a virtual
    previous vertex straight above it, so it runs counter-clockwise. Each
    step asks the spatial index for the k nearest points of the current
    vertex (the vertex itself counts towards k) and moves to the best
    ranked candidate until it returns to the start.

    Too small a k can leave the walk without a valid candidate, or let it
    close around only part of the cloud. These are reported as
    HullStatus.STALLED and HullStatus.POINTS_OUTSIDE with the unclosed
    walk; neither is repaired by retrying with a larger k. A closed walk
    is checked by point-in-polygon against every point not on it.

    Args:
        cloud: Cloud or view to wrap
        options: k, iteration cap and close_path flag

    Returns:
        ConcaveHull with the walk and its status. Fewer than three points
        gives INSUFFICIENT_POINTS, k outside 1..len(cloud) gives INVALID_K,
        both with an empty walk.
    """
    view = _as_view(cloud)
    parent = view.parent
    n = len(view)
    k = options.k

    if n < 3:
        message = f"Concave hull needs at least 3 points, got {n}"
        logger.debug(message)
        return ConcaveHull(TopologicalPointCloud(parent, []), HullStatus.INSUFFICIENT_POINTS, 0, message)
    if not 1 <= k <= n:
        message = f"k must be between 1 and {n}, got {k}"
        logger.debug(message)
        return ConcaveHull(TopologicalPointCloud(parent, []), HullStatus.INVALID_K, 0, message)

    ordered = view.sorted_xy()
    index = SpatialIndex(ordered)
    points = parent.points()

    start = ordered.get_id(0)
    hull = [start]
    in_hull = {start}
    previous = Point(points[start].x, points[start].y + 1.0)
    current = start

    iterations = 0
    status = HullStatus.ITERATION_LIMIT
    while options.max_iterations is None or iterations < options.max_iterations:
        iterations += 1
        winner = _next_vertex(index, points, hull, in_hull, previous, current, start, k)

        if winner is None:
            status = HullStatus.STALLED
            break
        if winner == start:
            status = HullStatus.COMPLETE
            break

        logger.debug(f"Concave hull step {iterations}: {current} -> {winner}")
        hull.append(winner)
        in_hull.add(winner)
        previous = points[current]
        current = winner

    outside: list[int] = []
    if status == HullStatus.COMPLETE:
        ring = [points[pid] for pid in hull]
        outside = [
            pid for pid in view.ids
            if pid not in in_hull and not point_in_polygon(points[pid], ring)
        ]
        if outside:
            status = HullStatus.POINTS_OUTSIDE

    if status == HullStatus.COMPLETE:
        message = f"Closed after {iterations} iterations with {len(hull)} vertices"
        logger.debug(message)
        if options.close_path:
            hull.append(start)
    elif status == HullStatus.STALLED:
        message = f"No valid candidate among {k} nearest of id {current}; try a larger k"
        logger.warning(f"Concave hull incomplete: {message}")
    elif status == HullStatus.POINTS_OUTSIDE:
        message = (
            f"Walk closed after {iterations} iterations but {len(outside)} points "
            f"lie outside (first id {outside[0]}); try a larger k"
        )
        logger.warning(f"Concave hull does not enclose the cloud: {message}")
    else:
        message = f"Iteration limit {options.max_iterations} reached before closing"
        logger.warning(f"Concave hull incomplete: {message}")

    return ConcaveHull(TopologicalPointCloud(parent, hull), status, iterations, message)
