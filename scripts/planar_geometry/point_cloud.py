"""
Point containers.

PointCloud is the ordered, mutable container every other module reads
from. TopologicalPointCloud is a read view that exposes a subset (or a
reordering) of a cloud's points by id without copying coordinates.

Ids are positions in the backing cloud. They are only stable while the
cloud is not mutated: every mutating PointCloud method bumps the cloud's
revision, and a view built at an older revision refuses to read
(StaleViewError) instead of silently returning shifted points.
"""

from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from .types import ORIGIN, Point, StaleViewError, Topology, check_index
from .intersection import path_intersections, path_intersects
from .simplify import reduce_points


PointLike = Union[Point, Tuple[float, float]]


def as_point(value: PointLike) -> Point:
    """Accept a Point or an (x, y) pair."""
    if isinstance(value, Point):
        return value
    x, y = value
    return Point(float(x), float(y))


class _PointQueries:
    """
    Read-only queries shared by clouds and views.

    Subclasses provide _items(), yielding (id, point) pairs in order.
    Queries that return ids return the ids yielded there.
    """

    def _items(self) -> Iterator[Tuple[int, Point]]:
        raise NotImplementedError

    def points(self) -> list[Point]:
        """Points in order, as a new list."""
        return [p for _, p in self._items()]

    def size(self) -> int:
        return len(self)

    def empty(self) -> bool:
        return len(self) == 0

    def first(self) -> Point:
        return self.points()[check_index(0, len(self))]

    def last(self) -> Point:
        return self.points()[check_index(len(self) - 1, len(self))]

    def _extreme_id(self, dimension: int, largest: bool) -> Optional[int]:
        best_id: Optional[int] = None
        best_value = 0.0
        for pid, p in self._items():
            value = p[dimension]
            if best_id is None or (value > best_value if largest else value < best_value):
                best_id = pid
                best_value = value
        return best_id

    def min_x_id(self) -> Optional[int]:
        return self._extreme_id(0, largest=False)

    def max_x_id(self) -> Optional[int]:
        return self._extreme_id(0, largest=True)

    def min_y_id(self) -> Optional[int]:
        return self._extreme_id(1, largest=False)

    def max_y_id(self) -> Optional[int]:
        return self._extreme_id(1, largest=True)

    def _extreme(self, dimension: int, largest: bool) -> Optional[float]:
        values = [p[dimension] for _, p in self._items()]
        if not values:
            return None
        return max(values) if largest else min(values)

    def min_x(self) -> Optional[float]:
        """Smallest x coordinate, or None for an empty cloud."""
        return self._extreme(0, largest=False)

    def max_x(self) -> Optional[float]:
        return self._extreme(0, largest=True)

    def min_y(self) -> Optional[float]:
        return self._extreme(1, largest=False)

    def max_y(self) -> Optional[float]:
        return self._extreme(1, largest=True)

    def bounding_box(self, close_path: bool = True) -> "PointCloud":
        """
        Axis-aligned rectangle around all points.

        Corners run (min_x, min_y), (max_x, min_y), (max_x, max_y),
        (min_x, max_y). Clouds with fewer than two points are returned
        as a copy.

        Args:
            close_path: Repeat the first corner at the end

        Returns:
            New PointCloud holding the corners
        """
        points = self.points()
        if len(points) <= 1:
            return PointCloud(points)

        min_x = min(p.x for p in points)
        max_x = max(p.x for p in points)
        min_y = min(p.y for p in points)
        max_y = max(p.y for p in points)

        box = PointCloud([
            Point(min_x, min_y),
            Point(max_x, min_y),
            Point(max_x, max_y),
            Point(min_x, max_y),
        ])
        if close_path:
            box.append(box[0])
        return box

    def length(self) -> float:
        """Length of the polyline through all points in order."""
        points = self.points()
        return sum(points[i].distance_to(points[i - 1]) for i in range(1, len(points)))

    def average_distance(self) -> float:
        """Mean distance between consecutive points, 0 for fewer than two."""
        n = len(self)
        if n < 2:
            return 0.0
        return self.length() / (n - 1)

    def center(self) -> Optional[Point]:
        """Centroid of all points, or None for an empty cloud."""
        points = self.points()
        if not points:
            return None
        return Point(
            sum(p.x for p in points) / len(points),
            sum(p.y for p in points) / len(points),
        )

    def closest(self, point: PointLike) -> Optional[int]:
        """
        Id of the point nearest to the given one by brute force.

        Use SpatialIndex for repeated queries. Ties keep the first id.
        """
        target = as_point(point)
        best_id: Optional[int] = None
        best_distance = 0.0
        for pid, p in self._items():
            d = p.sqr_distance_to(target)
            if best_id is None or d < best_distance:
                best_id = pid
                best_distance = d
        return best_id

    def furthest_apart(self, point: PointLike) -> Optional[int]:
        """Id of the point furthest from the given one. Ties keep the first id."""
        target = as_point(point)
        best_id: Optional[int] = None
        best_distance = 0.0
        for pid, p in self._items():
            d = p.sqr_distance_to(target)
            if best_id is None or d > best_distance:
                best_id = pid
                best_distance = d
        return best_id

    def index_of(self, point: PointLike) -> int:
        """Id of the first point equal to the given one, -1 if absent."""
        target = as_point(point)
        for pid, p in self._items():
            if p == target:
                return pid
        return -1

    def has_point(self, point: PointLike) -> bool:
        return self.index_of(point) != -1

    def similar_to(self, other: Iterable[Point], max_distance: float) -> bool:
        """Pointwise comparison with a tolerance. Sizes must match."""
        mine = self.points()
        theirs = [as_point(p) for p in other]
        if len(mine) != len(theirs):
            return False
        return all(a.similar_to(b, max_distance) for a, b in zip(mine, theirs))

    def intersects_with(self, other: Sequence[Point]) -> bool:
        """Check whether this polyline crosses another."""
        return path_intersects(self.points(), list(other))

    def intersections_with(self, other: Sequence[Point]) -> "PointCloud":
        """All crossings between this polyline and another."""
        return PointCloud(path_intersections(self.points(), list(other)))


class PointCloud(_PointQueries):
    """
    Ordered, mutable sequence of 2D points.

    Insertion order is preserved so that derived results (hull start
    vertex, simplification output) are reproducible. Ids are positions.
    Every mutating method increments revision, which invalidates views
    built earlier.
    """

    def __init__(self, points: Iterable[PointLike] = ()):
        self._points: list[Point] = [as_point(p) for p in points]
        self._revision = 0

    @property
    def revision(self) -> int:
        """Counter bumped by every mutation."""
        return self._revision

    def _touch(self) -> None:
        self._revision += 1

    def _items(self) -> Iterator[Tuple[int, Point]]:
        return enumerate(self._points)

    def points(self) -> list[Point]:
        return list(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(list(self._points))

    def __getitem__(self, pid: int) -> Point:
        return self.get(pid)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PointCloud):
            return NotImplemented
        return self._points == other._points

    def __repr__(self) -> str:
        return f"PointCloud({self._points!r})"

    def __add__(self, other: Iterable[PointLike]) -> "PointCloud":
        merged = self.copy()
        merged.extend(other)
        return merged

    def __iadd__(self, other: Iterable[PointLike]) -> "PointCloud":
        self.extend(other)
        return self

    def copy(self) -> "PointCloud":
        return PointCloud(self._points)

    def get(self, pid: int) -> Point:
        """
        Point with the given id.

        Raises:
            IndexError: If pid is negative or not below len(self)
        """
        return self._points[check_index(pid, len(self._points))]

    def append(self, point: PointLike) -> None:
        self._points.append(as_point(point))
        self._touch()

    def extend(self, points: Iterable[PointLike]) -> None:
        """Append every point of another cloud or sequence."""
        self._points.extend(as_point(p) for p in list(points))
        self._touch()

    def pop(self) -> Point:
        """Remove and return the last point."""
        check_index(len(self._points) - 1, len(self._points))
        self._touch()
        return self._points.pop()

    def clear(self) -> None:
        self._points.clear()
        self._touch()

    def _remove_if(self, predicate) -> None:
        self._points = [p for p in self._points if not predicate(p)]
        self._touch()

    def remove_left_of(self, x: float) -> None:
        """Drop points with p.x < x."""
        self._remove_if(lambda p: p.x < x)

    def remove_right_of(self, x: float) -> None:
        """Drop points with p.x > x."""
        self._remove_if(lambda p: p.x > x)

    def remove_above_of(self, y: float) -> None:
        """Drop points with p.y > y."""
        self._remove_if(lambda p: p.y > y)

    def remove_below_of(self, y: float) -> None:
        """Drop points with p.y < y."""
        self._remove_if(lambda p: p.y < y)

    def remove_closer_to_than(self, distance: float, center: PointLike = ORIGIN) -> None:
        """Drop points strictly closer than distance to center."""
        target = as_point(center)
        limit = distance * distance
        self._remove_if(lambda p: p.sqr_distance_to(target) < limit)

    def remove_further_than(self, distance: float, center: PointLike = ORIGIN) -> None:
        """Drop points strictly further than distance from center."""
        target = as_point(center)
        limit = distance * distance
        self._remove_if(lambda p: p.sqr_distance_to(target) > limit)

    def remove_from(self, index: int) -> None:
        """Drop every point from index on. Out-of-range indices are ignored."""
        if 0 <= index < len(self._points):
            del self._points[index:]
            self._touch()

    def remove_until(self, index: int) -> None:
        """Drop every point before index; an index past the end clears the cloud."""
        if index <= 0:
            return
        del self._points[:index]
        self._touch()

    def keep_range(self, start: int, end: int) -> None:
        """
        Keep only points start..end (inclusive).

        Invalid ranges (start > end or either bound out of range) leave
        the cloud untouched.
        """
        n = len(self._points)
        if start > end or not (0 <= start < n) or not (0 <= end < n):
            return
        self._points = self._points[start:end + 1]
        self._touch()

    def make_unique(self) -> None:
        """Drop repeated coordinates, keeping the first occurrence."""
        seen: set[Point] = set()
        unique: list[Point] = []
        for p in self._points:
            if p not in seen:
                seen.add(p)
                unique.append(p)
        self._points = unique
        self._touch()

    def sort_x(self) -> None:
        self._points.sort(key=lambda p: p.x)
        self._touch()

    def sort_y(self) -> None:
        self._points.sort(key=lambda p: p.y)
        self._touch()

    def sort(self) -> None:
        """Sort lexicographically by (x, y)."""
        self._points.sort(key=lambda p: (p.x, p.y))
        self._touch()

    def reverse(self) -> None:
        self._points.reverse()
        self._touch()

    def reduce_points(self, epsilon: float) -> None:
        """Simplify in place with Douglas-Peucker. A negative epsilon raises ValueError."""
        self._points = reduce_points(self._points, epsilon)
        self._touch()


class TopologicalPointCloud(_PointQueries):
    """
    Read view over a PointCloud through a list of ids.

    The view holds the cloud as an explicit handle next to its ids and
    never owns it; several views may share one cloud. All ids are
    validated against the cloud on construction. The view remembers the
    cloud's revision and raises StaleViewError once the cloud has been
    mutated through any other handle.
    """

    def __init__(
        self,
        cloud: PointCloud,
        ids: Optional[Union[Topology, Iterable[int]]] = None,
    ):
        """
        Create a view.

        Args:
            cloud: Backing cloud
            ids: Ids to expose, in order; defaults to every point

        Raises:
            IndexError: If an id does not address a point of cloud
            ValueError: If a topology wider than 1 is given
        """
        if ids is None:
            ids = range(len(cloud))
        topology = ids if isinstance(ids, Topology) else Topology.from_ids(ids)
        if topology.width != 1:
            raise ValueError(f"Views need a width-1 topology, got width {topology.width}")
        for pid in topology.ids():
            check_index(pid, len(cloud))

        self._cloud = cloud
        self._topology = topology
        self._revision = cloud.revision

    @property
    def parent(self) -> PointCloud:
        """The backing cloud."""
        return self._cloud

    @property
    def is_stale(self) -> bool:
        return self._cloud.revision != self._revision

    def _check_fresh(self) -> None:
        if self.is_stale:
            raise StaleViewError(
                f"Backing cloud changed (revision {self._revision} -> "
                f"{self._cloud.revision}); rebuild the view"
            )

    @property
    def topology(self) -> Topology:
        return self._topology

    @property
    def ids(self) -> Tuple[int, ...]:
        return self._topology.ids()

    def _items(self) -> Iterator[Tuple[int, Point]]:
        self._check_fresh()
        points = self._cloud._points
        return iter([(pid, points[pid]) for pid in self.ids])

    def __len__(self) -> int:
        return len(self._topology)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points())

    def __getitem__(self, index: int) -> Point:
        return self.get_tpoint(index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TopologicalPointCloud):
            return NotImplemented
        return self._cloud is other._cloud and self._topology == other._topology

    def __repr__(self) -> str:
        return f"TopologicalPointCloud(ids={list(self.ids)!r})"

    def get_id(self, index: int) -> int:
        """Id stored at the given position of the view."""
        return self._topology[index][0]

    def get_point(self, pid: int) -> Point:
        """Point of the backing cloud with the given id."""
        self._check_fresh()
        return self._cloud.get(pid)

    def get_tpoint(self, index: int) -> Point:
        """Point at the given position of the view."""
        return self.get_point(self.get_id(index))

    def first_id(self) -> int:
        return self.get_id(0)

    def last_id(self) -> int:
        return self.get_id(len(self) - 1)

    def _sorted(self, key) -> "TopologicalPointCloud":
        self._check_fresh()
        points = self._cloud._points
        return TopologicalPointCloud(
            self._cloud, sorted(self.ids, key=lambda pid: key(points[pid]))
        )

    def sorted_x(self) -> "TopologicalPointCloud":
        """New view with the same ids ordered by x."""
        return self._sorted(lambda p: p.x)

    def sorted_y(self) -> "TopologicalPointCloud":
        """New view with the same ids ordered by y."""
        return self._sorted(lambda p: p.y)

    def sorted_xy(self) -> "TopologicalPointCloud":
        """New view with the same ids ordered by (x, y)."""
        return self._sorted(lambda p: (p.x, p.y))

    def with_id(self, pid: int) -> "TopologicalPointCloud":
        """New view with one more id at the end."""
        self._check_fresh()
        return TopologicalPointCloud(self._cloud, self.ids + (pid,))

    def with_point(self, point: PointLike) -> "TopologicalPointCloud":
        """
        Append a point to the backing cloud and expose it.

        Appending mutates the cloud, so this view and every other view of
        the cloud become stale; use the returned view instead.
        """
        self._check_fresh()
        self._cloud.append(point)
        return TopologicalPointCloud(self._cloud, self.ids + (len(self._cloud) - 1,))

    def as_pointcloud(self) -> PointCloud:
        """Copy the exposed points into a new, independent cloud."""
        return PointCloud(self.points())
