from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from sprouts.core.game import GameState, MoveResult
from sprouts.errors import RejectionReason
from sprouts.fsm import GamePhase
from sprouts.turn_processing.turns import current_player, winner

Coordinate = tuple[float, float]


class GameCreateRequest(BaseModel):
    # Falls back to the configured starting point count.
    starting_point_count: int | None = Field(default=None, ge=1, le=64)


class MoveStartRequest(BaseModel):
    origin_id: int = Field(..., ge=0)


class MoveCompleteRequest(BaseModel):
    candidate_id: int = Field(..., ge=0)
    # Intermediate locations only; the line is anchored at both points.
    waypoints: list[Coordinate] = Field(default_factory=list, max_length=2000)
    # Optional new point placed on the line as part of the move.
    sprout_at: Coordinate | None = None


class PointPlaceRequest(BaseModel):
    location: Coordinate


class PointView(BaseModel):
    point_id: int
    location: Coordinate
    active: bool
    degree: int
    region_id: int
    edge_ids: list[int]


class EdgeView(BaseModel):
    edge_id: int
    start: int
    end: int
    path: list[Coordinate]


class RegionView(BaseModel):
    region_id: int
    parent_id: int | None
    inner_points: list[int]
    boundary_points: list[int]
    inner_regions: list[int]


class GameSnapshot(BaseModel):
    game_id: UUID
    created_at: datetime
    phase: GamePhase
    active: bool
    moves_made: int
    current_player: int
    winner: int | None = None
    move_origin: int | None = None

    points: list[PointView] = Field(default_factory=list)
    edges: list[EdgeView] = Field(default_factory=list)
    regions: list[RegionView] = Field(default_factory=list)


class GameListResponse(BaseModel):
    games: list[GameSnapshot]


class MoveResponse(BaseModel):
    accepted: bool
    rejection: RejectionReason | None = None
    detail: str = ""
    edge_ids: list[int] = Field(default_factory=list)
    new_points_created: list[int] = Field(default_factory=list)
    new_regions_created: list[int] = Field(default_factory=list)
    deactivated_points: list[int] = Field(default_factory=list)
    game_finished: bool = False
    game: GameSnapshot


class PointPlacedResponse(BaseModel):
    point_id: int
    game: GameSnapshot


class TerminalResponse(BaseModel):
    game_id: UUID
    terminal: bool


class SummaryResponse(BaseModel):
    game_id: UUID
    summary: str
    region_tree: str


def snapshot_from_state(state: GameState) -> GameSnapshot:
    geometry = state.geometry
    return GameSnapshot(
        game_id=state.game_id,
        created_at=state.created_at,
        phase=state.phase,
        active=state.active,
        moves_made=state.moves_made,
        current_player=current_player(state=state),
        winner=winner(state=state),
        move_origin=state.move_origin,
        points=[
            PointView(
                point_id=p.point_id,
                location=p.location,
                active=p.active,
                degree=p.degree,
                region_id=p.region_id,
                edge_ids=list(p.edges),
            )
            for p in state.graph.points
        ],
        edges=[
            EdgeView(edge_id=e.edge_id, start=e.start, end=e.end, path=geometry.coordinates(e.path))
            for e in sorted(state.graph.edges.values(), key=lambda e: e.edge_id)
        ],
        regions=[
            RegionView(
                region_id=r.region_id,
                parent_id=r.parent_id,
                inner_points=list(r.inner_points),
                boundary_points=list(r.boundary_points),
                inner_regions=list(r.inner_regions),
            )
            for r in state.regions.regions
        ],
    )


def move_response_from_result(*, result: MoveResult, state: GameState) -> MoveResponse:
    return MoveResponse(
        accepted=result.accepted,
        rejection=result.rejection,
        detail=result.detail,
        edge_ids=result.edge_ids,
        new_points_created=result.new_points_created,
        new_regions_created=result.new_regions_created,
        deactivated_points=result.deactivated_points,
        game_finished=result.game_finished,
        game=snapshot_from_state(state),
    )
