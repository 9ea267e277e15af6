"""
Segment and path intersection.

Segments are classified as vertical or horizontal before any slope is
computed, so parallel, vertical and zero-length segments are reported
as "no intersection" instead of failing with a division by zero.
"""

from typing import Optional, Sequence, Tuple

from .types import Point


# Paths with more points than this on both sides get a bounding box
# rejection test before the pairwise segment scan.
BOUNDING_BOX_THRESHOLD = 5


def _line_y_at(a: Point, b: Point, x: float) -> float:
    """y of the non-vertical line through a and b at the given x."""
    return a.y + a.slope_to(b) * (x - a.x)


def _within_extent(candidate: Point, s1: Point, s2: Point, vertical: bool) -> bool:
    """
    Check whether a point on the segment's line lies on the segment.

    A vertical segment has a single x value, so its y-extent is checked
    instead of its x-extent.
    """
    if vertical:
        return min(s1.y, s2.y) <= candidate.y <= max(s1.y, s2.y)
    return min(s1.x, s2.x) <= candidate.x <= max(s1.x, s2.x)


def intersect(p1: Point, p2: Point, q1: Point, q2: Point) -> Optional[Point]:
    """
    Intersection point of segments p1-p2 and q1-q2.

    Args:
        p1: Start of the first segment
        p2: End of the first segment
        q1: Start of the second segment
        q2: End of the second segment

    Returns:
        The intersection point, or None if the segments are parallel,
        degenerate or do not meet. Collinear overlapping segments count
        as parallel.
    """
    if p1 == p2 or q1 == q2:
        return None

    p_vertical = p1.x == p2.x
    q_vertical = q1.x == q2.x
    p_horizontal = p1.y == p2.y
    q_horizontal = q1.y == q2.y

    if (p_vertical and q_vertical) or (p_horizontal and q_horizontal):
        return None

    if p_vertical:
        x = p1.x
        y = q1.y if q_horizontal else _line_y_at(q1, q2, x)
    elif q_vertical:
        x = q1.x
        y = p1.y if p_horizontal else _line_y_at(p1, p2, x)
    else:
        p_slope = p1.slope_to(p2)
        q_slope = q1.slope_to(q2)
        if p_slope == q_slope:
            return None
        x = (q1.y - p1.y + p_slope * p1.x - q_slope * q1.x) / (p_slope - q_slope)
        if p_horizontal:
            y = p1.y
        elif q_horizontal:
            y = q1.y
        else:
            y = p_slope * (x - p1.x) + p1.y

    candidate = Point(x, y)
    if _within_extent(candidate, p1, p2, p_vertical) and _within_extent(
        candidate, q1, q2, q_vertical
    ):
        return candidate
    return None


def bounding_box_of(points: Sequence[Point]) -> Optional[Tuple[float, float, float, float]]:
    """
    Axis-aligned extent of a point sequence.

    Returns:
        (min_x, min_y, max_x, max_y), or None for an empty sequence
    """
    if len(points) == 0:
        return None
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def bounding_boxes_overlap(a: Sequence[Point], b: Sequence[Point]) -> bool:
    """Check whether the bounding boxes of two point sequences touch or overlap."""
    box_a = bounding_box_of(a)
    box_b = bounding_box_of(b)
    if box_a is None or box_b is None:
        return False

    a_min_x, a_min_y, a_max_x, a_max_y = box_a
    b_min_x, b_min_y, b_max_x, b_max_y = box_b
    return (
        a_min_x <= b_max_x
        and b_min_x <= a_max_x
        and a_min_y <= b_max_y
        and b_min_y <= a_max_y
    )


def _can_skip(a: Sequence[Point], b: Sequence[Point]) -> bool:
    if len(a) < 2 or len(b) < 2:
        return True
    if len(a) > BOUNDING_BOX_THRESHOLD and len(b) > BOUNDING_BOX_THRESHOLD:
        return not bounding_boxes_overlap(a, b)
    return False


def path_intersects(a: Sequence[Point], b: Sequence[Point]) -> bool:
    """
    Check whether two polylines cross.

    Large paths are first rejected by bounding box; otherwise every
    segment pair is tested until the first hit.

    Args:
        a: First polyline
        b: Second polyline

    Returns:
        True if any segment of a intersects any segment of b
    """
    if _can_skip(a, b):
        return False

    for i in range(len(a) - 1):
        for j in range(len(b) - 1):
            if intersect(a[i], a[i + 1], b[j], b[j + 1]) is not None:
                return True
    return False


def path_intersections(a: Sequence[Point], b: Sequence[Point]) -> list[Point]:
    """
    Collect every crossing between two polylines.

    Kept in step with path_intersects(): same pruning, but the scan runs
    to completion. A crossing at a shared vertex may be reported once per
    segment that touches it.
    """
    if _can_skip(a, b):
        return []

    hits: list[Point] = []
    for i in range(len(a) - 1):
        for j in range(len(b) - 1):
            hit = intersect(a[i], a[i + 1], b[j], b[j + 1])
            if hit is not None:
                hits.append(hit)
    return hits
