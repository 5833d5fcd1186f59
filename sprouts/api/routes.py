from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from sprouts.api.deps import get_store
from sprouts.api.models import (
    GameCreateRequest,
    GameListResponse,
    GameSnapshot,
    MoveCompleteRequest,
    MoveResponse,
    MoveStartRequest,
    PointPlacedResponse,
    PointPlaceRequest,
    SummaryResponse,
    TerminalResponse,
    move_response_from_result,
    snapshot_from_state,
)
from sprouts.core.board_text import game_state_to_paragraph, region_tree_to_text
from sprouts.core.game import GameState, cancel_move, is_terminal, place_point_mid_edge, start_move, try_complete_move
from sprouts.core.geometry import Location, PathHandle
from sprouts.game_store import GameStore, create_game, get_game, list_games, require_game
from sprouts.websocket_hub import watchers

router = APIRouter()


def _anchored_path(*, state: GameState, candidate_id: int, waypoints: list[Location]) -> PathHandle:
    """Build the drawn line from the move origin through `waypoints` to the candidate."""

    if state.move_origin is None:
        raise ValueError("No move in progress")
    origin = state.graph.point(state.move_origin)
    candidate = state.graph.point(candidate_id)
    if origin.point_id == candidate.point_id and len(waypoints) < 2:
        raise ValueError("A loop needs at least two waypoints")
    return state.geometry.make_path([origin.location, *waypoints, candidate.location])


@router.websocket("/ws/game/{game_id}")
async def game_updates_ws(websocket: WebSocket, game_id: UUID) -> None:
    await watchers.watch(game_id, websocket)
    try:
        # Anything the client sends is ignored; reading detects the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        watchers.unwatch(game_id, websocket)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/game", response_model=GameSnapshot, status_code=status.HTTP_201_CREATED)
async def create_game_route(payload: GameCreateRequest, store: GameStore = Depends(get_store)) -> GameSnapshot:
    try:
        state = create_game(store=store, starting_point_count=payload.starting_point_count)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return snapshot_from_state(state)


@router.get("/game", response_model=GameListResponse)
async def list_games_route(store: GameStore = Depends(get_store)) -> GameListResponse:
    return GameListResponse(games=[snapshot_from_state(s) for s in list_games(store=store)])


@router.get("/game/{game_id}", response_model=GameSnapshot)
async def get_game_route(game_id: UUID, store: GameStore = Depends(get_store)) -> GameSnapshot:
    state = get_game(store=store, game_id=game_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return snapshot_from_state(state)


@router.get("/game/{game_id}/terminal", response_model=TerminalResponse)
async def terminal_route(game_id: UUID, store: GameStore = Depends(get_store)) -> TerminalResponse:
    state = get_game(store=store, game_id=game_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return TerminalResponse(game_id=game_id, terminal=is_terminal(state=state))


@router.get("/game/{game_id}/summary", response_model=SummaryResponse)
async def summary_route(game_id: UUID, store: GameStore = Depends(get_store)) -> SummaryResponse:
    state = get_game(store=store, game_id=game_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return SummaryResponse(
        game_id=game_id,
        summary=game_state_to_paragraph(state=state),
        region_tree=region_tree_to_text(state=state),
    )


@router.post("/game/{game_id}/moves/start", response_model=GameSnapshot)
async def start_move_route(game_id: UUID, payload: MoveStartRequest, store: GameStore = Depends(get_store)) -> GameSnapshot:
    try:
        state = require_game(store=store, game_id=game_id)
        start_move(state=state, origin_id=payload.origin_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return snapshot_from_state(state)


@router.post("/game/{game_id}/moves/cancel", response_model=GameSnapshot)
async def cancel_move_route(game_id: UUID, store: GameStore = Depends(get_store)) -> GameSnapshot:
    try:
        state = require_game(store=store, game_id=game_id)
        cancel_move(state=state)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return snapshot_from_state(state)


@router.post("/game/{game_id}/moves/complete", response_model=MoveResponse)
async def complete_move_route(
    game_id: UUID,
    payload: MoveCompleteRequest,
    store: GameStore = Depends(get_store),
) -> MoveResponse:
    try:
        state = require_game(store=store, game_id=game_id)
        if state.active:
            path = _anchored_path(state=state, candidate_id=payload.candidate_id, waypoints=payload.waypoints)
        else:
            path = None
        result = try_complete_move(state=state, candidate_id=payload.candidate_id, path=path, sprout_at=payload.sprout_at)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    if result.accepted:
        await watchers.publish(state)
    return move_response_from_result(result=result, state=state)


@router.post("/game/{game_id}/edges/{edge_id}/points", response_model=PointPlacedResponse)
async def place_point_route(
    game_id: UUID,
    edge_id: int,
    payload: PointPlaceRequest,
    store: GameStore = Depends(get_store),
) -> PointPlacedResponse:
    try:
        state = require_game(store=store, game_id=game_id)
        point_id = place_point_mid_edge(state=state, edge_id=edge_id, location=payload.location)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await watchers.publish(state)
    return PointPlacedResponse(point_id=point_id, game=snapshot_from_state(state))
