from __future__ import annotations

from collections.abc import Callable, Generator, Sequence

import pytest
from fastapi.testclient import TestClient

from sprouts.config import SproutsSettings
from sprouts.core.game import GameState, MoveResult, start_move, try_complete_move
from sprouts.core.geometry import Location, ShapelyGeometry
from sprouts.core.regions import RegionTree
from sprouts.game_setup import build_game

Play = Callable[..., MoveResult]


@pytest.fixture()
def geometry() -> ShapelyGeometry:
    return ShapelyGeometry()


@pytest.fixture()
def game() -> GameState:
    """Six points on a circle of radius 150 around the origin (the default layout).

    Approximate locations: 0=(0,-150), 1=(130,-75), 2=(130,75), 3=(0,150),
    4=(-130,75), 5=(-130,-75).
    """

    return build_game(settings=SproutsSettings())


@pytest.fixture()
def play() -> Play:
    """Draw a line between two points the way a presentation layer would."""

    def _play(
        state: GameState,
        origin_id: int,
        candidate_id: int,
        waypoints: Sequence[Location] = (),
        sprout_at: Location | None = None,
    ) -> MoveResult:
        start_move(state=state, origin_id=origin_id)
        origin = state.graph.point(origin_id)
        candidate = state.graph.point(candidate_id)
        path = state.geometry.make_path([origin.location, *waypoints, candidate.location])
        return try_complete_move(state=state, candidate_id=candidate_id, path=path, sprout_at=sprout_at)

    return _play


def _assert_partition(state: GameState) -> None:
    """Every point is listed by exactly the region that owns it."""

    regions: RegionTree = state.regions
    regions.validate(state.graph)

    interior_count: dict[int, int] = {}
    for r in regions.walk():
        for pid in r.inner_points:
            interior_count[pid] = interior_count.get(pid, 0) + 1

    for p in state.graph.points:
        owner = regions.region(p.region_id)
        assert p.point_id in owner.inner_points or p.point_id in owner.boundary_points
        assert interior_count.get(p.point_id, 0) <= 1
        assert 0 <= p.degree <= 3
        if p.degree == 3:
            assert p.active is False


@pytest.fixture()
def assert_partition() -> Callable[[GameState], None]:
    return _assert_partition


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    from sprouts.api.deps import get_store
    from sprouts.game_store import GameStore, reset_store_for_tests
    from sprouts.main import app

    reset_store_for_tests()
    store = GameStore(settings=SproutsSettings())

    def _override() -> Generator[GameStore, None, None]:
        yield store

    app.dependency_overrides[get_store] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_store_for_tests()
