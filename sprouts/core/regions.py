from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from sprouts.core.geometry import GeometryProvider, Location, PathHandle
from sprouts.core.graph import Edge, PointGraph, SplitEdge
from sprouts.errors import InvariantViolation

logger = logging.getLogger(__name__)

ROOT_REGION_ID = 0


@dataclass(slots=True)
class Region:
    region_id: int
    parent_id: int | None
    # Closed boundary path; None for the unbounded root.
    path: PathHandle | None = None
    inner_points: list[int] = field(default_factory=list)
    # boundary_edges[i] joins boundary_points[i] to boundary_points[(i + 1) % n].
    boundary_points: list[int] = field(default_factory=list)
    boundary_edges: list[int] = field(default_factory=list)
    inner_regions: list[int] = field(default_factory=list)


class RegionTree:
    """Rooted tree of regions carved out of the plane by closed loops.

    Ownership rules:
    - every point is owned by exactly one region (`Point.region_id`) and is
      listed in that region's `inner_points` or `boundary_points`;
    - carving a region hands it the boundary points that were interior
      points of the parent; boundary points already owned elsewhere stay put;
    - a point never sits in the `inner_points` of two regions.
    """

    def __init__(self) -> None:
        self.regions: list[Region] = [Region(region_id=ROOT_REGION_ID, parent_id=None)]

    @property
    def root(self) -> Region:
        return self.regions[ROOT_REGION_ID]

    def region(self, region_id: int) -> Region:
        if region_id < 0 or region_id >= len(self.regions):
            raise ValueError(f"Region {region_id} not found")
        return self.regions[region_id]

    def walk(self) -> Iterator[Region]:
        """Pre-order traversal from the root, without recursion."""

        stack = [ROOT_REGION_ID]
        while stack:
            r = self.regions[stack.pop()]
            yield r
            stack.extend(reversed(r.inner_regions))

    def subtree_ids(self, region_id: int) -> set[int]:
        out: set[int] = set()
        stack = [region_id]
        while stack:
            rid = stack.pop()
            out.add(rid)
            stack.extend(self.regions[rid].inner_regions)
        return out

    def face_containing(self, location: Location, *, geometry: GeometryProvider) -> Region:
        """Deepest region whose boundary strictly contains `location`."""

        region = self.root
        while True:
            for cid in region.inner_regions:
                child = self.regions[cid]
                if geometry.path_contains(child.path, location):
                    region = child
                    break
            else:
                return region

    def face_for_edge(self, *, graph: PointGraph, geometry: GeometryProvider, start_id: int, path: PathHandle) -> Region:
        """Region whose face a path leaving `start_id` runs through.

        An interior point's own region is the answer; for a boundary point the
        face is found from the middle of the path.
        """

        owner = self.region(graph.point(start_id).region_id)
        if start_id in owner.inner_points:
            return owner
        return self.face_containing(geometry.midpoint(path), geometry=geometry)

    def carve(
        self,
        *,
        graph: PointGraph,
        geometry: GeometryProvider,
        parent_id: int,
        drawn: Edge,
        boundary: list[int],
        candidate_id: int,
    ) -> Region:
        """Create the child region enclosed by `drawn` plus `boundary`.

        `boundary` is an edge walk from `candidate_id` back to the drawn edge's
        other end, as produced by `detect_loops`. An empty walk means the drawn
        edge is a loop on its own.
        """

        parent = self.region(parent_id)
        origin_id = drawn.other(candidate_id)

        boundary_points = [candidate_id]
        closed = geometry.clone_path(drawn.path)
        current = candidate_id
        for eid in boundary:
            e = graph.edge(eid)
            try:
                current = e.other(current)
            except ValueError as err:
                raise InvariantViolation(f"Boundary edge {eid} does not continue the walk at point {current}") from err
            boundary_points.append(current)
            closed = geometry.join_paths(closed, e.path)
        if current != origin_id:
            raise InvariantViolation(f"Boundary walk ends at point {current}, expected {origin_id}")

        subtree = self.subtree_ids(parent_id)
        for pid in boundary_points:
            owner = graph.point(pid).region_id
            if owner not in subtree and pid not in parent.boundary_points:
                raise InvariantViolation(f"Boundary point {pid} is owned by region {owner}, outside region {parent_id}")

        region = Region(
            region_id=len(self.regions),
            parent_id=parent_id,
            path=closed,
            boundary_points=boundary_points,
            boundary_edges=[*boundary, drawn.edge_id],
        )
        self.regions.append(region)

        on_boundary = set(boundary_points)
        stay: list[int] = []
        for pid in parent.inner_points:
            p = graph.point(pid)
            if pid in on_boundary:
                p.region_id = region.region_id
            elif geometry.path_contains(closed, p.location):
                p.region_id = region.region_id
                region.inner_points.append(pid)
            else:
                stay.append(pid)
        parent.inner_points = stay

        keep: list[int] = []
        for cid in parent.inner_regions:
            child = self.regions[cid]
            if geometry.path_contains(closed, self._sample_location(child, graph=graph, geometry=geometry, exclude=on_boundary)):
                child.parent_id = region.region_id
                region.inner_regions.append(cid)
            else:
                keep.append(cid)
        parent.inner_regions = [*keep, region.region_id]

        logger.debug(
            "region %s carved from %s: boundary=%s inner=%s moved_regions=%s",
            region.region_id,
            parent_id,
            region.boundary_points,
            region.inner_points,
            region.inner_regions,
        )
        return region

    def _sample_location(self, child: Region, *, graph: PointGraph, geometry: GeometryProvider, exclude: set[int]) -> Location:
        """A location that is inside-or-on `child` but off the boundary being carved."""

        for pid in (*child.boundary_points, *child.inner_points):
            p = graph.point(pid)
            if pid not in exclude and p.region_id == child.region_id:
                return p.location
        return geometry.interior_location(child.path)

    def adopt_split_point(self, *, split: SplitEdge, graph: PointGraph, geometry: GeometryProvider) -> Region:
        """Record a point inserted on an edge and return its owning region."""

        old = split.retired
        p = split.point

        touched: list[Region] = []
        for r in self.walk():
            if old.edge_id not in r.boundary_edges:
                continue
            idx = r.boundary_edges.index(old.edge_id)
            if r.boundary_points[idx] == old.start:
                r.boundary_edges[idx : idx + 1] = [split.first.edge_id, split.second.edge_id]
            else:
                r.boundary_edges[idx : idx + 1] = [split.second.edge_id, split.first.edge_id]
            r.boundary_points.insert(idx + 1, p.point_id)
            touched.append(r)

        if touched:
            owner = min(touched, key=lambda r: r.region_id)
        else:
            start_owner = self.region(graph.point(old.start).region_id)
            if old.start in start_owner.inner_points:
                owner = start_owner
            else:
                owner = self.face_containing(p.location, geometry=geometry)
            owner.inner_points.append(p.point_id)

        p.region_id = owner.region_id
        return owner

    def validate(self, graph: PointGraph) -> None:
        """Raise InvariantViolation unless the tree partitions every point."""

        seen_regions: set[int] = set()
        interior_of: dict[int, int] = {}
        for r in self.walk():
            if r.region_id in seen_regions:
                raise InvariantViolation(f"Region {r.region_id} is reachable twice")
            seen_regions.add(r.region_id)
            for cid in r.inner_regions:
                if self.regions[cid].parent_id != r.region_id:
                    raise InvariantViolation(f"Region {cid} is listed under {r.region_id} but points elsewhere")
            for pid in r.inner_points:
                if pid in interior_of:
                    raise InvariantViolation(f"Point {pid} is interior to regions {interior_of[pid]} and {r.region_id}")
                interior_of[pid] = r.region_id

        for p in graph.points:
            if p.region_id not in seen_regions:
                raise InvariantViolation(f"Point {p.point_id} is owned by unreachable region {p.region_id}")
            owner = self.regions[p.region_id]
            if p.point_id not in owner.inner_points and p.point_id not in owner.boundary_points:
                raise InvariantViolation(f"Point {p.point_id} is not listed by its region {p.region_id}")
            if p.point_id in interior_of and interior_of[p.point_id] != p.region_id:
                raise InvariantViolation(f"Point {p.point_id} is interior to a region it is not owned by")
