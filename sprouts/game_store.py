from __future__ import annotations

from uuid import UUID

from sprouts.config import SproutsSettings
from sprouts.core.game import GameState
from sprouts.game_setup import build_game


class GameStore:
    """In-process registry of running games, keyed by game id.

    Games live only as long as the process does.
    """

    def __init__(self, *, settings: SproutsSettings) -> None:
        self.settings = settings
        self._games: dict[UUID, GameState] = {}

    def add(self, state: GameState) -> None:
        self._games[state.game_id] = state

    def get(self, game_id: UUID) -> GameState | None:
        return self._games.get(game_id)

    def all(self) -> list[GameState]:
        return list(self._games.values())


def create_game(*, store: GameStore, starting_point_count: int | None = None) -> GameState:
    if starting_point_count is not None and starting_point_count < 1:
        raise ValueError("starting_point_count must be a positive integer")

    state = build_game(settings=store.settings, starting_point_count=starting_point_count)
    store.add(state)
    return state


def get_game(*, store: GameStore, game_id: UUID) -> GameState | None:
    return store.get(game_id)


def require_game(*, store: GameStore, game_id: UUID) -> GameState:
    state = store.get(game_id)
    if state is None:
        raise ValueError("Game not found")
    return state


def list_games(*, store: GameStore) -> list[GameState]:
    out = store.all()
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out


_STORE: GameStore | None = None


def init_store(*, settings: SproutsSettings) -> GameStore:
    """Create the process-wide store once; later calls return the same instance."""

    global _STORE
    if _STORE is None:
        _STORE = GameStore(settings=settings)
    return _STORE


def reset_store_for_tests() -> None:
    global _STORE
    _STORE = None
