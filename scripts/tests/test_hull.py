"""
Unit tests for convex and concave hull extraction.
"""

import random
import unittest

from planar_geometry.types import (
    ConcaveHullOptions,
    ConvexHullOptions,
    HullStatus,
    Point,
)
from planar_geometry.point_cloud import PointCloud, TopologicalPointCloud
from planar_geometry.primitives import ccw
from planar_geometry.intersection import intersect
from planar_geometry.hull import concave_hull, convex_hull


def integer_cloud(seed, n, spread=50):
    rng = random.Random(seed)
    return PointCloud([(rng.randint(-spread, spread), rng.randint(-spread, spread)) for _ in range(n)])


def u_shape():
    """Open-topped U: bottom row, then both columns."""
    bottom = [(x, 0) for x in range(5)]
    left = [(0, y) for y in range(1, 4)]
    right = [(4, y) for y in range(1, 4)]
    return PointCloud(bottom + left + right)


def winding_number(p, ring):
    """Winding number of ring around p; the ring may repeat its first vertex."""
    wn = 0
    for a, b in zip(ring, ring[1:] + ring[:1]):
        if a.y <= p.y:
            if b.y > p.y and ccw(a, b, p) > 0:
                wn += 1
        elif b.y <= p.y and ccw(a, b, p) < 0:
            wn -= 1
    return wn


def grid(size):
    return PointCloud([(x, y) for x in range(size) for y in range(size)])


class TestConvexHull(unittest.TestCase):
    """Tests for the monotone chain hull."""

    def setUp(self):
        self.cloud = PointCloud([
            (-6, 0), (-5, 4), (3, -1), (3, 3), (1, 1), (2, 1), (-5, 4),
        ])

    def test_seven_point_hull(self):
        """Interior points (0,0), (1,1) and (2,1) are left out."""
        cloud = PointCloud([
            (0, 0), (3, -1), (3, 3), (-5, 4), (-6, 0), (1, 1), (2, 1),
        ])
        hull = convex_hull(cloud)
        self.assertEqual(len(hull), 5)
        self.assertEqual(hull.ids, (4, 1, 2, 3, 4))
        self.assertEqual(hull.points(), [
            Point(-6.0, 0.0), Point(3.0, -1.0), Point(3.0, 3.0),
            Point(-5.0, 4.0), Point(-6.0, 0.0),
        ])
        for absent in ((0.0, 0.0), (1.0, 1.0), (2.0, 1.0)):
            self.assertNotIn(Point(*absent), hull.points())

    def test_known_hull(self):
        """Interior and duplicate points are left out."""
        hull = convex_hull(self.cloud)
        self.assertEqual(len(hull), 5)
        self.assertEqual(hull.points(), [
            Point(-6.0, 0.0), Point(3.0, -1.0), Point(3.0, 3.0),
            Point(-5.0, 4.0), Point(-6.0, 0.0),
        ])
        self.assertEqual(hull.first_id(), hull.last_id())
        self.assertNotIn(4, hull.ids)
        self.assertNotIn(5, hull.ids)

    def test_open_path(self):
        """close_path=False leaves the ring open."""
        hull = convex_hull(self.cloud, ConvexHullOptions(close_path=False))
        self.assertEqual(len(hull), 4)
        self.assertNotEqual(hull.first(), hull.last())

    def test_hull_shares_backing_cloud(self):
        """The hull is a view onto the same cloud."""
        hull = convex_hull(self.cloud)
        self.assertIs(hull.parent, self.cloud)

    def test_encloses_all_points(self):
        """No point lies to the right of any hull edge."""
        for seed in range(5):
            cloud = integer_cloud(seed, 120)
            hull = convex_hull(cloud, ConvexHullOptions(close_path=False)).points()
            ring = hull + hull[:1]
            for a, b in zip(ring, ring[1:]):
                for p in cloud:
                    self.assertGreaterEqual(ccw(a, b, p), 0)

    def test_strictly_convex(self):
        """Every hull vertex is a strict left turn."""
        cloud = integer_cloud(9, 200)
        hull = convex_hull(cloud, ConvexHullOptions(close_path=False)).points()
        n = len(hull)
        for i in range(n):
            self.assertGreater(ccw(hull[i - 1], hull[i], hull[(i + 1) % n]), 0)

    def test_simple_polygon(self):
        """Non-adjacent hull edges do not meet."""
        cloud = integer_cloud(3, 150)
        hull = convex_hull(cloud).points()
        edges = list(zip(hull, hull[1:]))
        for i in range(len(edges)):
            for j in range(i + 2, len(edges)):
                if i == 0 and j == len(edges) - 1:
                    continue
                self.assertIsNone(intersect(*edges[i], *edges[j]))

    def test_idempotent(self):
        """The hull of a hull is the same ring."""
        cloud = integer_cloud(4, 100)
        first = convex_hull(cloud).points()
        second = convex_hull(PointCloud(first)).points()
        self.assertEqual(first, second)

    def test_tiny_inputs_returned_unchanged(self):
        """Fewer than two points come back as given."""
        empty = PointCloud()
        self.assertEqual(convex_hull(empty).ids, ())
        single = PointCloud([(2, 2)])
        self.assertEqual(convex_hull(single).ids, (0,))

    def test_collinear_points(self):
        """A line collapses to its two ends."""
        cloud = PointCloud([(2, 2), (0, 0), (1, 1), (3, 3)])
        hull = convex_hull(cloud)
        self.assertEqual(hull.ids, (1, 3, 1))

    def test_subset_view(self):
        """Only the ids of a view are wrapped."""
        cloud = PointCloud([(0, 0), (10, 0), (10, 10), (0, 10), (5, 5), (6, 1), (1, 6)])
        view = TopologicalPointCloud(cloud, [4, 5, 6, 0])
        hull = convex_hull(view)
        self.assertEqual(set(hull.ids), {0, 5, 4, 6})
        self.assertEqual(hull.first_id(), 0)


class TestConcaveHull(unittest.TestCase):
    """Tests for k-nearest gift wrapping."""

    def test_insufficient_points(self):
        """Fewer than three points cannot form a hull."""
        result = concave_hull(PointCloud([(0, 0), (1, 1)]), ConcaveHullOptions(k=2))
        self.assertEqual(result.status, HullStatus.INSUFFICIENT_POINTS)
        self.assertFalse(result.is_complete)
        self.assertEqual(len(result), 0)

    def test_invalid_k(self):
        """k must lie between 1 and the number of points."""
        cloud = u_shape()
        for k in (0, -2, len(cloud) + 1):
            result = concave_hull(cloud, ConcaveHullOptions(k=k))
            self.assertEqual(result.status, HullStatus.INVALID_K)
            self.assertEqual(result.ids, ())

    def test_negative_iteration_cap_rejected(self):
        """Option validation happens on construction."""
        with self.assertRaises(ValueError):
            ConcaveHullOptions(k=3, max_iterations=-1)

    def test_grid_with_full_neighbourhood(self):
        """With every point in reach the walk follows the outer boundary."""
        cloud = grid(5)
        result = concave_hull(cloud, ConcaveHullOptions(k=len(cloud)))
        self.assertEqual(result.status, HullStatus.COMPLETE)
        self.assertTrue(result.is_complete)

        points = result.view.points()
        self.assertEqual(len(points), 17)
        self.assertEqual(points[0], Point(0.0, 0.0))
        self.assertEqual(points[0], points[-1])
        self.assertEqual(points[1], Point(1.0, 0.0))
        self.assertEqual(points[5], Point(4.0, 1.0))
        for p in points:
            self.assertTrue(p.x in (0.0, 4.0) or p.y in (0.0, 4.0))
        self.assertEqual(len(set(points)), 16)

    def test_open_path(self):
        """close_path=False does not repeat the start."""
        cloud = grid(5)
        result = concave_hull(cloud, ConcaveHullOptions(k=len(cloud), close_path=False))
        self.assertTrue(result.is_complete)
        self.assertEqual(len(result), 16)

    def test_u_shape_completes(self):
        """A large enough k closes the U."""
        cloud = u_shape()
        result = concave_hull(cloud, ConcaveHullOptions(k=7))
        self.assertEqual(result.status, HullStatus.COMPLETE)
        self.assertEqual(result.view.points(), [
            Point(0.0, 0.0), Point(1.0, 0.0), Point(2.0, 0.0), Point(3.0, 0.0),
            Point(4.0, 0.0), Point(4.0, 1.0), Point(4.0, 2.0), Point(4.0, 3.0),
            Point(0.0, 3.0), Point(0.0, 2.0), Point(0.0, 1.0), Point(0.0, 0.0),
        ])

    def test_small_k_stalls(self):
        """Too few neighbours leaves the walk stuck at a column top."""
        cloud = u_shape()
        result = concave_hull(cloud, ConcaveHullOptions(k=3))
        self.assertEqual(result.status, HullStatus.STALLED)
        self.assertFalse(result.is_complete)
        self.assertEqual(result.iterations, 8)
        self.assertEqual(result.view.last(), Point(4.0, 3.0))
        self.assertEqual(len(result), 8)
        self.assertTrue(result.message)

    def test_iteration_limit(self):
        """The walk stops at the cap without closing."""
        cloud = u_shape()
        result = concave_hull(cloud, ConcaveHullOptions(k=7, max_iterations=3))
        self.assertEqual(result.status, HullStatus.ITERATION_LIMIT)
        self.assertEqual(result.iterations, 3)
        self.assertEqual(result.view.points(), [
            Point(0.0, 0.0), Point(1.0, 0.0), Point(2.0, 0.0), Point(3.0, 0.0),
        ])

    def test_zero_iterations(self):
        """A cap of zero returns only the start vertex."""
        result = concave_hull(u_shape(), ConcaveHullOptions(k=7, max_iterations=0))
        self.assertEqual(result.status, HullStatus.ITERATION_LIMIT)
        self.assertEqual(result.ids, (0,))

    def test_complete_hull_is_simple(self):
        """A complete hull never crosses itself."""
        cloud = grid(6)
        result = concave_hull(cloud, ConcaveHullOptions(k=len(cloud)))
        self.assertTrue(result.is_complete)
        points = result.view.points()
        edges = list(zip(points, points[1:]))
        for i in range(len(edges)):
            for j in range(i + 2, len(edges)):
                if i == 0 and j == len(edges) - 1:
                    continue
                self.assertIsNone(intersect(*edges[i], *edges[j]))

    def test_duplicates_ignored(self):
        """Repeated points do not create zero-length edges."""
        cloud = PointCloud([(0, 0), (4, 0), (4, 4), (0, 4), (0, 0), (4, 4)])
        result = concave_hull(cloud, ConcaveHullOptions(k=len(cloud)))
        self.assertTrue(result.is_complete)
        points = result.view.points()
        for a, b in zip(points, points[1:]):
            self.assertNotEqual(a, b)
        self.assertEqual(len(set(points)), 4)

    def test_two_vertex_walk_does_not_close(self):
        """Returning to the start after one step stalls instead of completing."""
        cloud = PointCloud([(0, 0), (0.5, 0.1), (10, 0), (10, 10), (0, 10), (5, 5)])
        result = concave_hull(cloud, ConcaveHullOptions(k=2))
        self.assertEqual(result.status, HullStatus.STALLED)
        self.assertFalse(result.is_complete)
        self.assertEqual(result.ids, (0, 1))
        self.assertEqual(result.iterations, 2)

    def test_outlier_left_outside(self):
        """A closed walk that misses a point is not reported as complete."""
        cloud = PointCloud([(0, 0), (1, 0), (1, 1), (0, 1), (100, 0.5)])
        result = concave_hull(cloud, ConcaveHullOptions(k=3))
        self.assertEqual(result.status, HullStatus.POINTS_OUTSIDE)
        self.assertFalse(result.is_complete)
        self.assertEqual(result.ids, (0, 1, 2, 3))
        self.assertIn("outside", result.message)

    def test_random_clouds_enclosed_when_complete(self):
        """Every COMPLETE hull encloses its cloud; POINTS_OUTSIDE ones do not."""
        complete = 0
        points_outside = 0
        for seed in range(100):
            rng = random.Random(seed)
            cloud = PointCloud([(rng.uniform(0, 100), rng.uniform(0, 100)) for _ in range(40)])
            result = concave_hull(cloud, ConcaveHullOptions(k=6))

            ring = [cloud[pid] for pid in result.ids]
            others = [cloud[pid] for pid in range(len(cloud)) if pid not in set(result.ids)]
            if result.status == HullStatus.COMPLETE:
                complete += 1
                self.assertEqual(result.ids[0], result.ids[-1])
                for p in others:
                    self.assertNotEqual(winding_number(p, ring), 0)
            elif result.status == HullStatus.POINTS_OUTSIDE:
                points_outside += 1
                self.assertNotEqual(result.ids[0], result.ids[-1])
                self.assertTrue(any(winding_number(p, ring) == 0 for p in others))

        self.assertGreater(complete, 0)
        self.assertGreater(points_outside, 0)


if __name__ == "__main__":
    unittest.main()
