from __future__ import annotations

from typing import Literal
from uuid import UUID

from fastapi import WebSocket
from pydantic import BaseModel

from sprouts.core.game import GameState
from sprouts.fsm import GamePhase

BoardMessageType = Literal["game_updated", "game_finished"]


class BoardMessage(BaseModel):
    type: BoardMessageType
    game_id: UUID
    moves_made: int
    phase: GamePhase


def board_messages(state: GameState) -> list[BoardMessage]:
    """Messages that describe the board after a committed change."""

    kinds: list[BoardMessageType] = ["game_updated"]
    if not state.active:
        kinds.append("game_finished")
    return [BoardMessage(type=k, game_id=state.game_id, moves_made=state.moves_made, phase=state.phase) for k in kinds]


class BoardWatchers:
    """Sockets watching each game's board.

    A socket that fails to receive a message is dropped; the client is
    expected to reconnect and re-read the game.
    """

    def __init__(self) -> None:
        self._sockets: dict[UUID, list[WebSocket]] = {}

    async def watch(self, game_id: UUID, websocket: WebSocket) -> None:
        await websocket.accept()
        self._sockets.setdefault(game_id, []).append(websocket)

    def unwatch(self, game_id: UUID, websocket: WebSocket) -> None:
        sockets = self._sockets.get(game_id, [])
        if websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            self._sockets.pop(game_id, None)

    def watching(self, game_id: UUID) -> int:
        return len(self._sockets.get(game_id, []))

    async def publish(self, state: GameState) -> None:
        sockets = list(self._sockets.get(state.game_id, []))
        if not sockets:
            return

        messages = [m.model_dump(mode="json") for m in board_messages(state)]
        for ws in sockets:
            try:
                for payload in messages:
                    await ws.send_json(payload)
            except Exception:
                self.unwatch(state.game_id, ws)


watchers = BoardWatchers()
