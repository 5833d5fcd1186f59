from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from sprouts.core.events import EventType, GameEvent
from sprouts.core.geometry import GeometryProvider, Location, PathHandle
from sprouts.core.graph import MAX_DEGREE, PointGraph, SplitEdge
from sprouts.core.loops import detect_loops
from sprouts.core.regions import RegionTree
from sprouts.errors import DegreeExceeded, GameFinished, InvariantViolation, MoveRejected, RejectionReason
from sprouts.fsm import GameFSM, GamePhase
from sprouts.turn_processing.validators import DEFAULT_MOVE_PIPELINE, MoveContext

logger = logging.getLogger(__name__)

# Presentation layers subscribe to react to events such as GAME_FINISHED.
GameListener = Callable[[GameEvent], None]


@dataclass(slots=True)
class GameState:
    geometry: GeometryProvider
    graph: PointGraph = field(default_factory=PointGraph)
    regions: RegionTree = field(default_factory=RegionTree)
    game_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    # Flips to False exactly once, when no legal move remains.
    active: bool = True
    phase: GamePhase = GamePhase.idle
    move_origin: int | None = None
    moves_made: int = 0

    events: list[GameEvent] = field(default_factory=list)
    listeners: list[GameListener] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MoveResult:
    accepted: bool
    rejection: RejectionReason | None = None
    detail: str = ""
    # Live edges that make up the new line (two once a sprout splits it).
    edge_ids: list[int] = field(default_factory=list)
    new_points_created: list[int] = field(default_factory=list)
    new_regions_created: list[int] = field(default_factory=list)
    deactivated_points: list[int] = field(default_factory=list)
    game_finished: bool = False


def _emit(state: GameState, type: EventType, payload: dict[str, object]) -> None:
    event = GameEvent.now(type=type, move_no=state.moves_made, payload=payload)
    state.events.append(event)
    for listener in state.listeners:
        listener(event)


def new_game(*, geometry: GeometryProvider, locations: list[Location]) -> GameState:
    """Create a game with one root region holding every starting point."""

    state = GameState(geometry=geometry)
    root = state.regions.root
    for loc in locations:
        p = state.graph.add_point(loc, region_id=root.region_id)
        root.inner_points.append(p.point_id)

    # A single starting point already leaves nothing to connect.
    _finish_if_terminal(state)
    return state


def is_terminal(*, state: GameState) -> bool:
    """True when no region holds two or more active interior points.

    A move needs two active points sharing a region, so then no move remains.
    """

    stack = [state.regions.root.region_id]
    while stack:
        region = state.regions.region(stack.pop())
        active = sum(1 for pid in region.inner_points if state.graph.point(pid).active)
        if active >= 2:
            return False
        stack.extend(region.inner_regions)
    return True


def _finish_if_terminal(state: GameState) -> bool:
    if not state.active:
        return True
    if not is_terminal(state=state):
        return False

    fsm = GameFSM(state)
    fsm.finish()
    fsm.sync_phase_to_model()
    state.active = False
    state.move_origin = None
    logger.info("game %s finished after %d moves", state.game_id, state.moves_made)
    _emit(state, "GAME_FINISHED", {"moves_made": state.moves_made})
    return True


def start_move(*, state: GameState, origin_id: int) -> None:
    """Pick the point a new line starts from. Starting again replaces the origin."""

    if not state.active:
        raise GameFinished("Game is finished")
    origin = state.graph.point(origin_id)
    if origin.degree >= MAX_DEGREE:
        raise DegreeExceeded(f"Point {origin_id} already has {MAX_DEGREE} connections")

    fsm = GameFSM(state)
    fsm.begin()
    fsm.sync_phase_to_model()
    state.move_origin = origin_id
    _emit(state, "MOVE_STARTED", {"origin_id": origin_id})


def cancel_move(*, state: GameState) -> None:
    """Discard the path being drawn. Nothing was committed, so nothing changes."""

    if state.phase != GamePhase.drawing:
        raise ValueError("No move in progress")

    fsm = GameFSM(state)
    fsm.abandon()
    fsm.sync_phase_to_model()
    origin_id = state.move_origin
    state.move_origin = None
    _emit(state, "MOVE_CANCELLED", {"origin_id": origin_id})


def try_complete_move(
    *,
    state: GameState,
    candidate_id: int,
    path: PathHandle,
    sprout_at: Location | None = None,
) -> MoveResult:
    """Finish the move started by `start_move` with a line ending at `candidate_id`.

    `path` must run from the origin's location to the candidate's. Rejections
    (game over, degree, crossings) come back as a result with
    `accepted=False` and leave the game untouched apart from ending the draw.
    """

    if not state.active:
        return MoveResult(accepted=False, rejection=RejectionReason.game_finished, detail="Game is finished", game_finished=True)
    if state.phase != GamePhase.drawing or state.move_origin is None:
        raise ValueError("No move in progress")

    origin_id = state.move_origin
    ctx = MoveContext(origin_id=origin_id, candidate_id=candidate_id, path=path)
    try:
        DEFAULT_MOVE_PIPELINE.validate(ctx=ctx, state=state)
    except MoveRejected as e:
        fsm = GameFSM(state)
        fsm.abandon()
        fsm.sync_phase_to_model()
        state.move_origin = None
        logger.warning("move %s -> %s rejected: %s", origin_id, candidate_id, e)
        _emit(state, "MOVE_REJECTED", {"origin_id": origin_id, "candidate_id": candidate_id, "reason": e.reason.value})
        return MoveResult(accepted=False, rejection=e.reason, detail=str(e))

    try:
        result = record_move(state=state, origin_id=origin_id, candidate_id=candidate_id, path=path, sprout_at=sprout_at)
    except (InvariantViolation, ValueError):
        # The board is already restored; the draw ends with it.
        fsm = GameFSM(state)
        fsm.abandon()
        fsm.sync_phase_to_model()
        state.move_origin = None
        raise

    if state.active:
        fsm = GameFSM(state)
        fsm.commit()
        fsm.sync_phase_to_model()
        state.move_origin = None
    return result


def _snapshot(state: GameState) -> tuple[PointGraph, RegionTree]:
    # Paths belong to the geometry provider; share them instead of copying.
    memo: dict[int, object] = {id(e.path): e.path for e in state.graph.edges.values()}
    memo.update({id(r.path): r.path for r in state.regions.regions if r.path is not None})
    return copy.deepcopy((state.graph, state.regions), memo)


def _place_point(
    state: GameState,
    *,
    edge_id: int,
    location: Location,
    new_paths: tuple[PathHandle, PathHandle] | None = None,
) -> tuple[SplitEdge, dict[str, object]]:
    """Split `edge_id` at `location`; returns the split and the POINT_PLACED payload to emit once validated."""

    split = state.graph.place_point_on_edge(edge_id, location, geometry=state.geometry, new_paths=new_paths)
    owner = state.regions.adopt_split_point(split=split, graph=state.graph, geometry=state.geometry)
    payload: dict[str, object] = {
        "point_id": split.point.point_id,
        "edge_id": edge_id,
        "region_id": owner.region_id,
        "new_edge_ids": [split.first.edge_id, split.second.edge_id],
    }
    return split, payload


def record_move(
    *,
    state: GameState,
    origin_id: int,
    candidate_id: int,
    path: PathHandle,
    sprout_at: Location | None = None,
) -> MoveResult:
    """Commit a validated line origin_id -> candidate_id.

    Detects closed loops, inserts the edge, carves one region per loop,
    optionally places a new point on the line, deactivates saturated
    endpoints and checks for the end of the game. An InvariantViolation, or a
    ValueError from a bad sprout location, restores the graph and regions as
    they were and propagates. Events are emitted only once the move holds.
    """

    saved = _snapshot(state)
    try:
        parent = state.regions.face_for_edge(graph=state.graph, geometry=state.geometry, start_id=candidate_id, path=path)
        boundaries = detect_loops(graph=state.graph, origin_id=origin_id, candidate_id=candidate_id)
        edge = state.graph.add_edge(origin_id, candidate_id, path)

        new_regions: list[int] = []
        for boundary in boundaries:
            region = state.regions.carve(
                graph=state.graph,
                geometry=state.geometry,
                parent_id=parent.region_id,
                drawn=edge,
                boundary=boundary,
                candidate_id=candidate_id,
            )
            new_regions.append(region.region_id)

        new_points: list[int] = []
        edge_ids = [edge.edge_id]
        placed: dict[str, object] | None = None
        if sprout_at is not None:
            split, placed = _place_point(state, edge_id=edge.edge_id, location=sprout_at)
            new_points.append(split.point.point_id)
            edge_ids = [split.first.edge_id, split.second.edge_id]

        state.regions.validate(state.graph)
    except InvariantViolation:
        state.graph, state.regions = saved
        logger.exception("move %s -> %s broke the region tree; rolled back", origin_id, candidate_id)
        raise
    except ValueError:
        # e.g. a sprout location at the very end of the line
        state.graph, state.regions = saved
        raise

    deactivated: list[int] = []
    for pid in dict.fromkeys((origin_id, candidate_id)):
        p = state.graph.point(pid)
        if p.active and p.degree >= MAX_DEGREE:
            p.active = False
            deactivated.append(pid)

    state.moves_made += 1
    logger.info(
        "move %d committed: %s -> %s (edge %s, regions %s)",
        state.moves_made,
        origin_id,
        candidate_id,
        edge.edge_id,
        new_regions,
    )
    if placed is not None:
        _emit(state, "POINT_PLACED", placed)
    for rid in new_regions:
        _emit(state, "REGION_CREATED", {"region_id": rid, "parent_id": parent.region_id})
    _emit(
        state,
        "MOVE_COMMITTED",
        {"origin_id": origin_id, "candidate_id": candidate_id, "edge_id": edge.edge_id, "deactivated": deactivated},
    )

    finished = _finish_if_terminal(state)
    return MoveResult(
        accepted=True,
        edge_ids=edge_ids,
        new_points_created=new_points,
        new_regions_created=new_regions,
        deactivated_points=deactivated,
        game_finished=finished,
    )


def place_point_mid_edge(
    *,
    state: GameState,
    edge_id: int,
    location: Location,
    new_paths: tuple[PathHandle, PathHandle] | None = None,
) -> int:
    """Place a new point on an existing line and return its id."""

    if not state.active:
        raise GameFinished("Game is finished")

    saved = _snapshot(state)
    try:
        split, placed = _place_point(state, edge_id=edge_id, location=location, new_paths=new_paths)
        state.regions.validate(state.graph)
    except InvariantViolation:
        state.graph, state.regions = saved
        raise

    _emit(state, "POINT_PLACED", placed)
    return split.point.point_id
