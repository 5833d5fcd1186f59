from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sprouts.core.geometry import GeometryProvider, Location, PathHandle
from sprouts.errors import DegreeExceeded

logger = logging.getLogger(__name__)

MAX_DEGREE = 3


@dataclass(slots=True)
class Point:
    point_id: int
    location: Location
    # Owning region (see RegionTree for the ownership rules).
    region_id: int
    active: bool = True
    # Incident edge ids in creation order. A loop edge is listed twice.
    edges: list[int] = field(default_factory=list)

    @property
    def degree(self) -> int:
        return len(self.edges)

    @property
    def free_slots(self) -> int:
        return MAX_DEGREE - len(self.edges)


@dataclass(slots=True)
class Edge:
    edge_id: int
    start: int
    end: int
    path: PathHandle

    @property
    def is_loop(self) -> bool:
        return self.start == self.end

    def other(self, point_id: int) -> int:
        if point_id == self.start:
            return self.end
        if point_id == self.end:
            return self.start
        raise ValueError(f"Point {point_id} is not an endpoint of edge {self.edge_id}")


@dataclass(frozen=True, slots=True)
class SplitEdge:
    """Outcome of placing a point on an edge.

    - `retired`: the edge that no longer exists.
    - `first`: start <-> point.
    - `second`: point <-> end.
    """

    point: Point
    retired: Edge
    first: Edge
    second: Edge


class PointGraph:
    """Arena of points and edges.

    Points are indexed by their position in `points` and are never removed.
    Edges live in a dict because splitting retires them.
    """

    def __init__(self) -> None:
        self.points: list[Point] = []
        self.edges: dict[int, Edge] = {}
        self._next_edge_id = 0

    def add_point(self, location: Location, *, region_id: int) -> Point:
        p = Point(point_id=len(self.points), location=location, region_id=region_id)
        self.points.append(p)
        return p

    def point(self, point_id: int) -> Point:
        if point_id < 0 or point_id >= len(self.points):
            raise ValueError(f"Point {point_id} not found")
        return self.points[point_id]

    def edge(self, edge_id: int) -> Edge:
        e = self.edges.get(edge_id)
        if e is None:
            raise ValueError(f"Edge {edge_id} not found")
        return e

    def check_can_connect(self, start_id: int, end_id: int) -> None:
        """Raise DegreeExceeded if a new edge start_id -> end_id would break the degree cap."""

        start = self.point(start_id)
        end = self.point(end_id)
        if start_id == end_id:
            if start.free_slots < 2:
                raise DegreeExceeded(f"Point {start_id} has no room for a loop (degree {start.degree})")
            return
        for p in (start, end):
            if p.free_slots < 1:
                raise DegreeExceeded(f"Point {p.point_id} already has {MAX_DEGREE} connections")

    def _new_edge(self, start: int, end: int, path: PathHandle) -> Edge:
        e = Edge(edge_id=self._next_edge_id, start=start, end=end, path=path)
        self._next_edge_id += 1
        self.edges[e.edge_id] = e
        return e

    def add_edge(self, start_id: int, end_id: int, path: PathHandle) -> Edge:
        self.check_can_connect(start_id, end_id)

        e = self._new_edge(start_id, end_id, path)
        self.point(start_id).edges.append(e.edge_id)
        self.point(end_id).edges.append(e.edge_id)
        logger.debug("edge %s added: %s -> %s", e.edge_id, start_id, end_id)
        return e

    def place_point_on_edge(
        self,
        edge_id: int,
        location: Location,
        *,
        geometry: GeometryProvider,
        new_paths: tuple[PathHandle, PathHandle] | None = None,
    ) -> SplitEdge:
        """Insert a new point on `edge_id`, splitting it in two.

        The new point starts in the region of the edge's start point and with
        degree 2; callers that know better reassign the region afterwards.
        """

        old = self.edge(edge_id)
        at = geometry.nearest_location_on(old.path, location)
        if new_paths is None:
            new_paths = geometry.split_path_at(old.path, at)
        head, tail = new_paths

        start = self.point(old.start)
        end = self.point(old.end)
        start.edges = [eid for eid in start.edges if eid != old.edge_id]
        if not old.is_loop:
            end.edges = [eid for eid in end.edges if eid != old.edge_id]
        del self.edges[old.edge_id]

        p = self.add_point(at, region_id=start.region_id)
        first = self._new_edge(old.start, p.point_id, head)
        second = self._new_edge(p.point_id, old.end, tail)
        start.edges.append(first.edge_id)
        end.edges.append(second.edge_id)
        p.edges = [first.edge_id, second.edge_id]

        logger.debug(
            "point %s placed on edge %s (now edges %s and %s)",
            p.point_id,
            old.edge_id,
            first.edge_id,
            second.edge_id,
        )
        return SplitEdge(point=p, retired=old, first=first, second=second)
