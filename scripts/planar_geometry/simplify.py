"""
Douglas-Peucker polyline reduction.

Ranges are processed from an explicit worklist rather than by recursion,
so deeply nested splits on long, noisy polylines cannot exhaust the
interpreter's recursion limit.
"""

from typing import Sequence

from .types import Point
from .primitives import distance_point_line


def reduce_ids(points: Sequence[Point], epsilon: float) -> list[int]:
    """
    Positions of the points kept by Douglas-Peucker reduction.

    Args:
        points: Ordered polyline
        epsilon: Maximum perpendicular distance of a dropped point to
                 the chord that replaces it

    Returns:
        Ascending positions into points. The first and last positions are
        always kept.

    Raises:
        ValueError: If epsilon is negative
    """
    if epsilon < 0:
        raise ValueError(f"epsilon must be >= 0, got {epsilon}")

    n = len(points)
    if n <= 2:
        return list(range(n))

    keep = [False] * n
    keep[0] = True
    keep[n - 1] = True

    stack = [(0, n - 1)]
    while stack:
        start, end = stack.pop()
        if end - start < 2:
            continue

        max_distance = 0.0
        split = start
        for i in range(start + 1, end):
            d = distance_point_line(points[i], points[start], points[end])
            if d > max_distance:
                max_distance = d
                split = i

        if max_distance > epsilon:
            keep[split] = True
            stack.append((split, end))
            stack.append((start, split))

    return [i for i in range(n) if keep[i]]


def reduce_points(points: Sequence[Point], epsilon: float) -> list[Point]:
    """
    Simplify a polyline with the Douglas-Peucker algorithm.

    Inputs with two or fewer points are returned unchanged (as a list).

    Raises:
        ValueError: If epsilon is negative
    """
    return [points[i] for i in reduce_ids(points, epsilon)]
