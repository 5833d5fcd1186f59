from __future__ import annotations

from collections.abc import Callable

import pytest

import sprouts.core.game as game_module
from sprouts.config import SproutsSettings
from sprouts.core.events import GameEvent
from sprouts.core.game import (
    GameState,
    cancel_move,
    is_terminal,
    start_move,
    try_complete_move,
)
from sprouts.errors import DegreeExceeded, GameFinished, InvariantViolation, RejectionReason
from sprouts.fsm import GamePhase
from sprouts.game_setup import build_game
from sprouts.turn_processing.turns import current_player, winner


def test_new_game_is_idle_and_active(game: GameState) -> None:
    assert game.active
    assert game.phase == GamePhase.idle
    assert game.moves_made == 0
    assert len(game.graph.points) == 6
    assert all(p.active and p.degree == 0 for p in game.graph.points)
    assert not is_terminal(state=game)


def test_single_point_game_starts_finished() -> None:
    state = build_game(settings=SproutsSettings(), starting_point_count=1)

    assert state.active is False
    assert state.phase == GamePhase.finished
    assert [e.type for e in state.events] == ["GAME_FINISHED"]


def test_start_and_cancel_leave_the_board_alone(game: GameState) -> None:
    start_move(state=game, origin_id=0)
    assert game.phase == GamePhase.drawing
    assert game.move_origin == 0

    # Picking another origin while drawing replaces the first.
    start_move(state=game, origin_id=2)
    assert game.move_origin == 2

    cancel_move(state=game)
    assert game.phase == GamePhase.idle
    assert game.move_origin is None
    assert game.graph.edges == {}
    assert [e.type for e in game.events] == ["MOVE_STARTED", "MOVE_STARTED", "MOVE_CANCELLED"]


def test_cancel_without_move_is_an_error(game: GameState) -> None:
    with pytest.raises(ValueError, match="No move in progress"):
        cancel_move(state=game)


def test_complete_without_start_is_an_error(game: GameState) -> None:
    path = game.geometry.make_path([(0.0, -150.0), (0.0, 150.0)])
    with pytest.raises(ValueError, match="No move in progress"):
        try_complete_move(state=game, candidate_id=3, path=path)


def test_simple_move(game: GameState, play, assert_partition: Callable[[GameState], None]) -> None:
    result = play(game, 0, 1)

    assert result.accepted
    assert result.edge_ids == [0]
    assert result.new_regions_created == []
    assert result.deactivated_points == []
    assert game.moves_made == 1
    assert game.phase == GamePhase.idle
    assert game.graph.point(0).degree == 1
    assert game.graph.point(1).degree == 1
    assert current_player(state=game) == 1
    assert_partition(game)


def test_self_crossing_path_is_rejected(game: GameState, play) -> None:
    result = play(game, 4, 5, [(-50.0, -50.0), (-50.0, 50.0)])

    assert not result.accepted
    assert result.rejection == RejectionReason.self_intersection
    assert result.detail == "Path crosses itself"
    assert game.graph.edges == {}
    assert game.moves_made == 0
    assert game.phase == GamePhase.idle
    assert game.events[-1].type == "MOVE_REJECTED"


def test_path_crossing_an_edge_is_rejected(game: GameState, play) -> None:
    play(game, 0, 3)
    result = play(game, 4, 5, [(50.0, 0.0)])

    assert not result.accepted
    assert result.rejection == RejectionReason.self_intersection
    assert result.detail == "Path crosses edge 0"
    assert len(game.graph.edges) == 1
    assert game.moves_made == 1


def test_third_connection_deactivates_point(game: GameState, play, assert_partition: Callable[[GameState], None]) -> None:
    play(game, 0, 1)
    play(game, 0, 2)
    result = play(game, 0, 3)

    assert result.deactivated_points == [0]
    assert game.graph.point(0).active is False
    assert game.graph.point(0).degree == 3
    assert_partition(game)

    with pytest.raises(DegreeExceeded):
        start_move(state=game, origin_id=0)

    rejected = play(game, 4, 0)
    assert rejected.rejection == RejectionReason.degree_exceeded
    assert game.graph.point(0).degree == 3


def test_loop_move_uses_two_connections(game: GameState, play, assert_partition: Callable[[GameState], None]) -> None:
    result = play(game, 0, 0, [(-40.0, -220.0), (40.0, -220.0)])

    assert result.accepted
    region = game.regions.region(result.new_regions_created[0])
    assert region.boundary_points == [0]
    assert region.inner_points == []
    assert game.graph.point(0).degree == 2
    assert game.graph.point(0).active
    assert_partition(game)

    again = play(game, 0, 0, [(-40.0, -80.0), (40.0, -80.0)])
    assert again.rejection == RejectionReason.degree_exceeded


def test_sprout_splits_the_new_line(game: GameState, play, assert_partition: Callable[[GameState], None]) -> None:
    result = play(game, 0, 1, sprout_at=(65.0, -112.0))

    assert result.accepted
    assert result.new_points_created == [6]
    assert result.edge_ids == [1, 2]
    assert sorted(game.graph.edges) == [1, 2]

    sprout = game.graph.point(6)
    assert sprout.degree == 2
    assert sprout.active
    assert 6 in game.regions.root.inner_points
    assert game.graph.point(0).degree == 1
    assert game.graph.point(1).degree == 1
    assert_partition(game)
    assert [e.type for e in game.events][-2:] == ["POINT_PLACED", "MOVE_COMMITTED"]


def test_bad_sprout_rolls_the_move_back(game: GameState, play) -> None:
    with pytest.raises(ValueError):
        play(game, 0, 1, sprout_at=(0.0, -150.0))

    assert game.graph.edges == {}
    assert game.graph.point(0).degree == 0
    assert game.moves_made == 0
    assert game.phase == GamePhase.idle
    assert game.move_origin is None
    assert [e.type for e in game.events] == ["MOVE_STARTED"]


def test_last_move_finishes_the_game() -> None:
    state = build_game(settings=SproutsSettings(), starting_point_count=2)
    seen: list[GameEvent] = []
    state.listeners.append(seen.append)

    start_move(state=state, origin_id=0)
    path = state.geometry.make_path([state.graph.point(0).location, state.graph.point(1).location])
    assert try_complete_move(state=state, candidate_id=1, path=path).accepted

    start_move(state=state, origin_id=1)
    path = state.geometry.make_path([state.graph.point(1).location, (150.0, 0.0), state.graph.point(0).location])
    result = try_complete_move(state=state, candidate_id=0, path=path)

    assert result.accepted
    assert result.game_finished
    assert state.active is False
    assert state.phase == GamePhase.finished
    assert is_terminal(state=state)
    assert winner(state=state) == 1
    assert seen[-1].type == "GAME_FINISHED"

    with pytest.raises(GameFinished):
        start_move(state=state, origin_id=0)

    late = try_complete_move(state=state, candidate_id=0, path=path)
    assert late.rejection == RejectionReason.game_finished
    assert late.game_finished
    assert is_terminal(state=state)


def test_broken_boundary_rolls_back(game: GameState, play, monkeypatch: pytest.MonkeyPatch) -> None:
    play(game, 0, 1)
    play(game, 2, 3)

    # Edge 1 joins 2 and 3, so it cannot continue a walk from point 5.
    monkeypatch.setattr(game_module, "detect_loops", lambda **_: [[1]])

    start_move(state=game, origin_id=4)
    path = game.geometry.make_path([game.graph.point(4).location, game.graph.point(5).location])
    with pytest.raises(InvariantViolation):
        try_complete_move(state=game, candidate_id=5, path=path)

    assert sorted(game.graph.edges) == [0, 1]
    assert game.graph.point(4).degree == 0
    assert game.graph.point(5).degree == 0
    assert len(game.regions.regions) == 1
    assert game.moves_made == 2
    assert game.phase == GamePhase.idle
    assert game.move_origin is None
    assert game.events[-1].type == "MOVE_STARTED"


def test_path_through_a_point_is_rejected(game: GameState, play) -> None:
    result = play(game, 5, 1, [(0.0, -150.0)])

    assert result.rejection == RejectionReason.self_intersection
    assert result.detail == "Path passes through point 0"
    assert game.graph.edges == {}


def test_path_through_an_edge_end_is_rejected(game: GameState, play) -> None:
    play(game, 3, 0)
    result = play(game, 5, 1, [(0.0, -150.0)])

    assert not result.accepted
    assert result.rejection == RejectionReason.self_intersection
    assert sorted(game.graph.edges) == [0]
    assert game.graph.point(0).degree == 1
