from __future__ import annotations

import logging

from sprouts.core.graph import PointGraph

logger = logging.getLogger(__name__)


def detect_loops(*, graph: PointGraph, origin_id: int, candidate_id: int) -> list[list[int]]:
    """Return every boundary closed by a new edge origin_id -> candidate_id.

    Must be called before the new edge is inserted. Walks the existing edges
    depth-first from `candidate_id`; each walk that arrives back at
    `origin_id` is one boundary, given as edge ids in walk order (starting at
    the candidate, ending at the origin).

    Points are marked visited the first time they are explored and never
    explored again, so a second closure through an already explored point can
    be missed. One witness per branch is enough to know a loop closed.

    A loop move (origin == candidate) closes on the new edge alone: `[[]]`.
    """

    if origin_id == candidate_id:
        return [[]]

    boundaries: list[list[int]] = []
    visited = {candidate_id}
    # Frames of (point id, index of the next incident edge to try).
    stack: list[tuple[int, int]] = [(candidate_id, 0)]
    path: list[int] = []

    while stack:
        point_id, idx = stack[-1]
        edges = graph.point(point_id).edges
        if idx >= len(edges):
            stack.pop()
            if path:
                path.pop()
            continue

        stack[-1] = (point_id, idx + 1)
        edge_id = edges[idx]
        nxt = graph.edge(edge_id).other(point_id)

        if nxt == origin_id:
            boundaries.append([*path, edge_id])
            continue
        if nxt in visited:
            continue

        visited.add(nxt)
        path.append(edge_id)
        stack.append((nxt, 0))

    logger.debug("loop search %s -> %s found %d boundaries", origin_id, candidate_id, len(boundaries))
    return boundaries
