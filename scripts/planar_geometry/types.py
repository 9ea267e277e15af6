"""
Value types for planar geometry.

Points, topologies and option/result records are frozen dataclasses.
Operations that change them return new instances rather than mutating.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Iterator, Optional, Tuple, TYPE_CHECKING
import math

if TYPE_CHECKING:
    from .point_cloud import TopologicalPointCloud


@dataclass(frozen=True)
class Point:
    """
    2D point with exact equality.

    Coordinates are stored as floats. Use similar_to() when a tolerance
    is needed. Points can be indexed by dimension: p[0] is x, p[1] is y.
    """
    x: float
    y: float

    def __getitem__(self, dimension: int) -> float:
        if dimension == 0:
            return self.x
        if dimension == 1:
            return self.y
        raise IndexError(f"Point has no dimension {dimension}")

    def sqr_distance_to(self, other: "Point") -> float:
        """Squared Euclidean distance, cheaper when only ordering matters."""
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def distance_to(self, other: "Point") -> float:
        """Compute Euclidean distance to another point."""
        return math.sqrt(self.sqr_distance_to(other))

    def similar_to(self, other: "Point", tolerance: float) -> bool:
        """Check if another point is within tolerance distance."""
        return self.distance_to(other) <= tolerance

    def slope_to(self, other: "Point") -> float:
        """
        Slope of the line from this point to another.

        Raises:
            ZeroDivisionError: If both points share the same x coordinate
        """
        return (other.y - self.y) / (other.x - self.x)

    def as_tuple(self) -> Tuple[float, float]:
        """Return coordinates as a tuple."""
        return (self.x, self.y)


ORIGIN = Point(0.0, 0.0)


class StaleViewError(RuntimeError):
    """Raised when a view is read after its backing cloud was mutated elsewhere."""


def check_index(index: int, size: int) -> int:
    """Return index unchanged if it addresses one of size elements."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"id must be an int, got {type(index).__name__}")
    if not 0 <= index < size:
        raise IndexError(f"id {index} out of range for {size} elements")
    return index


@dataclass(frozen=True)
class Topology:
    """
    Sequence of fixed-width tuples of point ids.

    A topology names points of a backing cloud without copying their
    coordinates. width=1 holds plain id lists (hulls, query results),
    width=2 would hold edges and so on. Element access is bounds-checked
    and negative positions are rejected.
    """
    elements: Tuple[Tuple[int, ...], ...] = ()
    width: int = 1

    def __post_init__(self):
        if self.width < 1:
            raise ValueError(f"Topology width must be positive, got {self.width}")
        elements = tuple(tuple(e) for e in self.elements)
        for element in elements:
            if len(element) != self.width:
                raise ValueError(
                    f"Element {element} does not match topology width {self.width}"
                )
            for pid in element:
                if isinstance(pid, bool) or not isinstance(pid, int) or pid < 0:
                    raise ValueError(f"Invalid point id {pid!r}")
        object.__setattr__(self, "elements", elements)

    @staticmethod
    def from_ids(ids: Iterable[int]) -> "Topology":
        """Build a width-1 topology from a flat id sequence."""
        return Topology(tuple((pid,) for pid in ids), 1)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        return iter(self.elements)

    def __getitem__(self, index: int) -> Tuple[int, ...]:
        return self.elements[check_index(index, len(self.elements))]

    @property
    def n_elements(self) -> int:
        """Number of elements in this topology."""
        return len(self.elements)

    def empty(self) -> bool:
        return not self.elements

    def first(self) -> Tuple[int, ...]:
        return self[0]

    def last(self) -> Tuple[int, ...]:
        return self[len(self.elements) - 1]

    def ids(self) -> Tuple[int, ...]:
        """All ids in element order, flattened."""
        return tuple(pid for element in self.elements for pid in element)

    def appended(self, element: Tuple[int, ...]) -> "Topology":
        return Topology(self.elements + (tuple(element),), self.width)

    def concat(self, other: "Topology") -> "Topology":
        if other.width != self.width:
            raise ValueError(
                f"Cannot join topologies of width {self.width} and {other.width}"
            )
        return Topology(self.elements + other.elements, self.width)

    def reversed(self) -> "Topology":
        return Topology(tuple(reversed(self.elements)), self.width)

    def max_id(self) -> Optional[int]:
        """Largest referenced id, or None for an empty topology."""
        ids = self.ids()
        return max(ids) if ids else None


@dataclass(frozen=True)
class ConvexHullOptions:
    """Options for convex_hull()."""
    close_path: bool = True


@dataclass(frozen=True)
class ConcaveHullOptions:
    """
    Options for concave_hull().

    Attributes:
        k: Number of nearest neighbours considered at each step
        max_iterations: Cap on walk steps, None for unbounded
        close_path: Repeat the first vertex at the end of a complete hull

    Only max_iterations is validated here. The valid range of k depends on
    the cloud, so concave_hull() checks it and reports k outside
    1..len(cloud) as HullStatus.INVALID_K.
    """
    k: int
    max_iterations: Optional[int] = None
    close_path: bool = True

    def __post_init__(self):
        if self.max_iterations is not None and self.max_iterations < 0:
            raise ValueError(
                f"max_iterations must be >= 0 or None, got {self.max_iterations}"
            )


class HullStatus(Enum):
    """Outcome of a concave hull walk."""
    COMPLETE = auto()
    INSUFFICIENT_POINTS = auto()
    INVALID_K = auto()
    STALLED = auto()
    ITERATION_LIMIT = auto()
    POINTS_OUTSIDE = auto()


@dataclass(frozen=True)
class ConcaveHull:
    """
    Result of a concave hull walk.

    The view holds the hull ids in walk order. Only a COMPLETE hull is
    a valid ring; STALLED, ITERATION_LIMIT and POINTS_OUTSIDE keep the
    walk and are never closed.
    """
    view: "TopologicalPointCloud"
    status: HullStatus
    iterations: int = 0
    message: str = field(default="", compare=False)

    @property
    def is_complete(self) -> bool:
        return self.status == HullStatus.COMPLETE

    @property
    def ids(self) -> Tuple[int, ...]:
        return self.view.ids

    def __len__(self) -> int:
        return len(self.view)
