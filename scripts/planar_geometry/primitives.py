"""
Closed-form 2D primitives shared by the hull, intersection and
simplification code.
"""

import math
from typing import Sequence

from .types import Point


def direction(p1: Point, p2: Point) -> Point:
    """Vector from p1 to p2."""
    return Point(p2.x - p1.x, p2.y - p1.y)


def dot(v1: Point, v2: Point) -> float:
    return v1.x * v2.x + v1.y * v2.y


def cross(v1: Point, v2: Point) -> float:
    """z component of the cross product of two vectors."""
    return v1.x * v2.y - v2.x * v1.y


def ccw(p1: Point, p2: Point, p3: Point) -> float:
    """
    Signed area of the triangle p1, p2, p3 (times two).

    Positive for a counter-clockwise turn, negative for clockwise and
    zero when the points are collinear.
    """
    return (p2.x - p1.x) * (p3.y - p1.y) - (p2.y - p1.y) * (p3.x - p1.x)


def turn(p: Point, q: Point, r: Point) -> int:
    """
    Direction of the turn p -> q -> r.

    Returns:
        1 for counter-clockwise, -1 for clockwise, 0 for collinear
    """
    c = cross(direction(p, q), direction(q, r))
    if c > 0:
        return 1
    if c < 0:
        return -1
    return 0


def ccw_angle(reference: Point, vector: Point) -> float:
    """
    Counter-clockwise angle from reference to vector, in [0, 2*pi).

    Both arguments are direction vectors.
    """
    angle = math.atan2(cross(reference, vector), dot(reference, vector))
    if angle < 0.0:
        angle += 2.0 * math.pi
    return angle


def distance_point_line(p: Point, l1: Point, l2: Point) -> float:
    """
    Perpendicular distance from p to the infinite line through l1 and l2.

    When l1 and l2 coincide the line is undefined and the plain distance
    from p to l1 is returned.
    """
    chord = direction(l1, l2)
    length = math.hypot(chord.x, chord.y)
    if length == 0.0:
        return p.distance_to(l1)
    return abs(cross(chord, direction(l1, p))) / length


def point_in_polygon(point: Point, ring: Sequence[Point]) -> bool:
    """
    Check whether a point lies inside or on the boundary of a polygon.

    Ray casting (even-odd rule). Points on an edge or vertex count as
    inside.

    Args:
        point: Point to test
        ring: Polygon vertices in order; a repeated closing vertex is allowed

    Returns:
        True if point is enclosed, False for rings of fewer than 3 vertices
    """
    n = len(ring)
    if n < 3:
        return False

    inside = False
    for i in range(n):
        a, b = ring[i - 1], ring[i]
        if (
            ccw(a, b, point) == 0
            and min(a.x, b.x) <= point.x <= max(a.x, b.x)
            and min(a.y, b.y) <= point.y <= max(a.y, b.y)
        ):
            return True
        if (a.y > point.y) != (b.y > point.y):
            x = a.x + (point.y - a.y) * (b.x - a.x) / (b.y - a.y)
            if point.x < x:
                inside = not inside
    return inside
