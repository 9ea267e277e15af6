"""
Spatial indexing for nearest-neighbour and range queries.

A KD-tree over a snapshot of 2D points. Each node splits its points at
the median along one axis, alternating x and y with depth, which keeps
the tree balanced and the query recursion O(log n) deep.
"""

import logging
from typing import Callable, Iterable, Optional, Tuple, Union

from .types import Point, Topology, check_index
from .point_cloud import PointCloud, PointLike, TopologicalPointCloud, as_point


logger = logging.getLogger(__name__)


class _Node:
    """
    One split of the tree.

    Every point in the left subtree has coordinate[dimension] <= the
    pivot's, every point in the right subtree has coordinate[dimension]
    >= the pivot's. Children are owned exclusively; a node without
    children is a leaf.
    """

    __slots__ = ("pivot", "dimension", "left", "right")

    def __init__(
        self,
        pivot: int,
        dimension: int,
        left: Optional["_Node"] = None,
        right: Optional["_Node"] = None,
    ):
        self.pivot = pivot
        self.dimension = dimension
        self.left = left
        self.right = right

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def _select(ids: list[int], k: int, key: Callable[[int], float]) -> None:
    """
    Partially order ids in place around position k.

    Afterwards ids[k] holds the element with the k-th smallest key,
    everything before it has a key <= and everything after a key >=.
    """
    lo, hi = 0, len(ids) - 1
    while lo < hi:
        pivot_value = key(ids[(lo + hi) // 2])
        i, j = lo, hi
        while i <= j:
            while key(ids[i]) < pivot_value:
                i += 1
            while key(ids[j]) > pivot_value:
                j -= 1
            if i <= j:
                ids[i], ids[j] = ids[j], ids[i]
                i += 1
                j -= 1
        if k <= j:
            hi = j
        elif k >= i:
            lo = i
        else:
            return


def _limit(candidates: list[Tuple[float, int]], k: int) -> list[Tuple[float, int]]:
    """Sort (squared distance, id) pairs ascending and keep the best k."""
    candidates.sort()
    return candidates[:k]


class SpatialIndex:
    """
    KD-tree over a fixed snapshot of points.

    The index copies the coordinates at construction time and is
    immutable afterwards. Returned ids are ids of the source: positions
    of a PointCloud or sequence, or parent ids of a TopologicalPointCloud.
    Mutating the source afterwards does not affect the index, but makes
    its ids meaningless for the new contents; rebuild instead.
    """

    def __init__(self, source: Union[PointCloud, TopologicalPointCloud, Iterable[PointLike]]):
        """
        Build the tree.

        Args:
            source: Points to index. A view indexes only its ids.

        Raises:
            StaleViewError: If source is a view whose cloud has changed
        """
        if isinstance(source, TopologicalPointCloud):
            source.points()
            self._points: Tuple[Point, ...] = tuple(source.parent.points())
            ids = list(source.ids)
        elif isinstance(source, PointCloud):
            self._points = tuple(source.points())
            ids = list(range(len(self._points)))
        else:
            self._points = tuple(as_point(p) for p in source)
            ids = list(range(len(self._points)))

        self._size = len(ids)
        self._root = self._build(ids, 0)
        logger.debug(f"Built spatial index over {self._size} points")

    def _build(self, ids: list[int], depth: int) -> Optional[_Node]:
        if not ids:
            return None

        dimension = depth % 2
        if len(ids) == 1:
            return _Node(ids[0], dimension)

        median = len(ids) // 2
        points = self._points
        _select(ids, median, lambda pid: points[pid][dimension])

        return _Node(
            ids[median],
            dimension,
            self._build(ids[:median], depth + 1),
            self._build(ids[median + 1:], depth + 1),
        )

    def __len__(self) -> int:
        return self._size

    def size(self) -> int:
        """Number of indexed points."""
        return self._size

    def point(self, pid: int) -> Point:
        """Snapshot coordinates of an id."""
        return self._points[check_index(pid, len(self._points))]

    def depth(self) -> int:
        """Number of levels, 0 for an empty index."""
        def _depth(node: Optional[_Node]) -> int:
            if node is None:
                return 0
            return 1 + max(_depth(node.left), _depth(node.right))
        return _depth(self._root)

    def to_topology(self) -> Topology:
        """All indexed ids in in-order traversal (left, pivot, right)."""
        ids: list[int] = []

        def _walk(node: Optional[_Node]) -> None:
            if node is None:
                return
            _walk(node.left)
            ids.append(node.pivot)
            _walk(node.right)

        _walk(self._root)
        return Topology.from_ids(ids)

    def _sides(self, node: _Node, target: Point) -> Tuple[Optional[_Node], Optional[_Node], float]:
        """
        Split a node's children into (near, far) for a query.

        Ties route left. The third value is the signed distance from the
        query to the splitting line.
        """
        pivot_point = self._points[node.pivot]
        offset = target[node.dimension] - pivot_point[node.dimension]
        if offset <= 0:
            return node.left, node.right, offset
        return node.right, node.left, offset

    def nearest(self, query: PointLike) -> Optional[int]:
        """
        Find the id of the point closest to query.

        Args:
            query: Search position

        Returns:
            Id of a nearest point, or None if the index is empty
        """
        if self._root is None:
            return None
        best_id, _ = self._nearest(self._root, as_point(query))
        return best_id

    def _nearest(self, node: _Node, target: Point) -> Tuple[int, float]:
        pivot_distance = target.sqr_distance_to(self._points[node.pivot])
        if node.is_leaf:
            return node.pivot, pivot_distance

        near, far, offset = self._sides(node, target)

        best_id, best = node.pivot, pivot_distance
        if near is not None:
            candidate_id, candidate = self._nearest(near, target)
            if candidate < best:
                best_id, best = candidate_id, candidate

        # The far side can only hold a closer point if the splitting line
        # is within the current best distance.
        if far is not None and offset * offset <= best:
            candidate_id, candidate = self._nearest(far, target)
            if candidate < best:
                best_id, best = candidate_id, candidate

        return best_id, best

    def k_nearest(self, query: PointLike, k: int) -> Topology:
        """
        Find the k points closest to query.

        Args:
            query: Search position
            k: Number of neighbours wanted

        Returns:
            min(k, len(self)) distinct ids sorted by ascending distance
            (ties by id); empty if k < 1 or the index is empty
        """
        if k < 1 or self._root is None:
            return Topology()
        found = self._k_nearest(self._root, as_point(query), k)
        return Topology.from_ids(pid for _, pid in found)

    def _k_nearest(self, node: _Node, target: Point, k: int) -> list[Tuple[float, int]]:
        candidates = [(target.sqr_distance_to(self._points[node.pivot]), node.pivot)]
        if node.is_leaf:
            return candidates

        near, far, offset = self._sides(node, target)

        if near is not None:
            candidates = _limit(candidates + self._k_nearest(near, target, k), k)

        # Pruning compares against the worst kept candidate and only once
        # k candidates are held.
        if far is not None and (len(candidates) < k or offset * offset <= candidates[-1][0]):
            candidates = _limit(candidates + self._k_nearest(far, target, k), k)

        return candidates

    def in_circle(self, query: PointLike, radius: float) -> Topology:
        """
        Find all points within radius of query (boundary included).

        Returns:
            Matching ids in no particular order; empty if radius <= 0
        """
        if radius <= 0 or self._root is None:
            return Topology()
        found: list[int] = []
        self._in_circle(self._root, as_point(query), radius, found)
        return Topology.from_ids(found)

    def _in_circle(self, node: _Node, target: Point, radius: float, found: list[int]) -> None:
        if target.sqr_distance_to(self._points[node.pivot]) <= radius * radius:
            found.append(node.pivot)
        if node.is_leaf:
            return

        near, far, offset = self._sides(node, target)
        if near is not None:
            self._in_circle(near, target, radius, found)
        if far is not None and abs(offset) <= radius:
            self._in_circle(far, target, radius, found)

    def in_box(self, query: PointLike, half_width: float, half_height: float) -> Topology:
        """
        Find all points inside an axis-aligned box centred on query.

        Args:
            query: Box centre
            half_width: Half of the box extent along x
            half_height: Half of the box extent along y

        Returns:
            Matching ids (boundary included) in no particular order;
            empty if either extent is <= 0
        """
        if half_width <= 0 or half_height <= 0 or self._root is None:
            return Topology()
        found: list[int] = []
        self._in_box(self._root, as_point(query), (half_width, half_height), found)
        return Topology.from_ids(found)

    def _in_box(
        self,
        node: _Node,
        target: Point,
        half_extents: Tuple[float, float],
        found: list[int],
    ) -> None:
        pivot_point = self._points[node.pivot]
        if (
            abs(target.x - pivot_point.x) <= half_extents[0]
            and abs(target.y - pivot_point.y) <= half_extents[1]
        ):
            found.append(node.pivot)
        if node.is_leaf:
            return

        near, far, offset = self._sides(node, target)
        if near is not None:
            self._in_box(near, target, half_extents, found)
        if far is not None and abs(offset) <= half_extents[node.dimension]:
            self._in_box(far, target, half_extents, found)
