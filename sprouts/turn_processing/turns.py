from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sprouts.core.game import GameState

PLAYER_COUNT = 2


def current_player(*, state: GameState) -> int:
    """Return which player (0 or 1) draws the next line.

    Players alternate; turn order is derived from how many moves were committed.
    """

    return state.moves_made % PLAYER_COUNT


def winner(*, state: GameState) -> int | None:
    """Normal play: whoever cannot move loses, so the last mover wins.

    None while the game is still running.
    """

    if state.active:
        return None
    return (state.moves_made - 1) % PLAYER_COUNT
