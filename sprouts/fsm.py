from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from statemachine import State, StateMachine

if TYPE_CHECKING:
    from sprouts.core.game import GameState


class GamePhase(StrEnum):
    idle = "idle"
    drawing = "drawing"
    finished = "finished"


class GameFSM(StateMachine):
    """FSM wrapper around GameState's move lifecycle.

    - idle: waiting for a player to pick an origin point.
    - drawing: an origin is chosen and a path is being drawn; nothing is committed.
    - finished: no legal move remains. Final.

    Domain changes are applied by `sprouts.core.game`; the FSM only guards transitions.
    """

    idle = State(GamePhase.idle.value, value=GamePhase.idle.value, initial=True)
    drawing = State(GamePhase.drawing.value, value=GamePhase.drawing.value)
    finished = State(GamePhase.finished.value, value=GamePhase.finished.value, final=True)

    begin = idle.to(drawing) | drawing.to(drawing)
    commit = drawing.to(idle)
    abandon = drawing.to(idle)
    finish = idle.to(finished) | drawing.to(finished)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value=game.phase.value)

    def sync_phase_to_model(self) -> None:
        self.game.phase = GamePhase(str(self.current_state.value))
