from __future__ import annotations

from collections.abc import Sequence
from math import dist
from typing import Any, Protocol

from shapely.geometry import LineString, Point, Polygon
from shapely.ops import substring, unary_union

Location = tuple[float, float]

# Opaque to the engine; only the geometry provider looks inside.
PathHandle = Any


class GeometryProvider(Protocol):
    """Vector geometry primitives the rules engine delegates to."""

    def make_path(self, locations: Sequence[Location]) -> PathHandle:  # pragma: no cover
        ...

    def split_path_at(self, path: PathHandle, location: Location) -> tuple[PathHandle, PathHandle]:  # pragma: no cover
        ...

    def nearest_location_on(self, path: PathHandle, location: Location) -> Location:  # pragma: no cover
        ...

    def paths_intersect(self, path_a: PathHandle, path_b: PathHandle) -> bool:  # pragma: no cover
        ...

    def passes_through(self, path: PathHandle, location: Location) -> bool:  # pragma: no cover
        ...

    def path_contains(self, path: PathHandle, location: Location) -> bool:  # pragma: no cover
        ...

    def clone_path(self, path: PathHandle) -> PathHandle:  # pragma: no cover
        ...

    def join_paths(self, path_a: PathHandle, path_b: PathHandle) -> PathHandle:  # pragma: no cover
        ...

    def midpoint(self, path: PathHandle) -> Location:  # pragma: no cover
        ...

    def interior_location(self, path: PathHandle) -> Location:  # pragma: no cover
        ...

    def coordinates(self, path: PathHandle) -> list[Location]:  # pragma: no cover
        ...


class ShapelyGeometry:
    """GeometryProvider backed by shapely line strings.

    Paths are `LineString`s. A closed path is a line string whose last
    coordinate equals its first; containment treats it as a polygon.
    """

    def __init__(self, *, endpoint_tolerance: float = 1e-6) -> None:
        self.endpoint_tolerance = endpoint_tolerance

    def make_path(self, locations: Sequence[Location]) -> LineString:
        coords = [(float(x), float(y)) for x, y in locations]
        if len(coords) < 2:
            raise ValueError("A path needs at least two locations")
        return LineString(coords)

    def split_path_at(self, path: LineString, location: Location) -> tuple[LineString, LineString]:
        d = path.project(Point(location))
        if d <= self.endpoint_tolerance or d >= path.length - self.endpoint_tolerance:
            raise ValueError("Split location must lie strictly inside the path")
        return substring(path, 0.0, d), substring(path, d, path.length)

    def nearest_location_on(self, path: LineString, location: Location) -> Location:
        p = path.interpolate(path.project(Point(location)))
        return (p.x, p.y)

    def paths_intersect(self, path_a: LineString, path_b: LineString) -> bool:
        """True when the paths cross or overlap anywhere but at an end they share.

        Passing the same path twice asks whether it crosses itself. Touching
        the other path's end point is a crossing unless both paths end there.
        """

        if path_a is path_b:
            return not path_a.is_simple

        hits = path_a.intersection(path_b)
        if hits.is_empty:
            return False

        tol = max(self.endpoint_tolerance, 1e-9)
        ends_b = [path_b.coords[0], path_b.coords[-1]]
        shared = [c for c in (path_a.coords[0], path_a.coords[-1]) if any(dist(c, e) <= tol for e in ends_b)]
        if not shared:
            return True
        return not hits.difference(unary_union([Point(c).buffer(tol) for c in shared])).is_empty

    def passes_through(self, path: LineString, location: Location) -> bool:
        """True when `location` lies on the path, within the endpoint tolerance."""

        return path.distance(Point(location)) <= max(self.endpoint_tolerance, 1e-9)

    def path_contains(self, path: LineString, location: Location) -> bool:
        coords = list(path.coords)
        if len(coords) < 3:
            return False
        return Polygon(coords).contains(Point(location))

    def clone_path(self, path: LineString) -> LineString:
        return LineString(list(path.coords))

    def join_paths(self, path_a: LineString, path_b: LineString) -> LineString:
        """Append `path_b` to the end of `path_a`, reversing it if it runs the other way."""

        a = list(path_a.coords)
        b = list(path_b.coords)
        if dist(a[-1], b[-1]) < dist(a[-1], b[0]):
            b.reverse()
        if dist(a[-1], b[0]) <= self.endpoint_tolerance:
            b = b[1:]
        return LineString(a + b)

    def midpoint(self, path: LineString) -> Location:
        p = path.interpolate(0.5, normalized=True)
        return (p.x, p.y)

    def interior_location(self, path: LineString) -> Location:
        p = Polygon(list(path.coords)).representative_point()
        return (p.x, p.y)

    def coordinates(self, path: LineString) -> list[Location]:
        return [(x, y) for x, y in path.coords]
