from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

EventType = Literal[
    "MOVE_STARTED",
    "MOVE_CANCELLED",
    "MOVE_REJECTED",
    "MOVE_COMMITTED",
    "REGION_CREATED",
    "POINT_PLACED",
    "GAME_FINISHED",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    move_no: int
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, move_no: int, payload: dict[str, Any]) -> "GameEvent":
        return GameEvent(type=type, move_no=move_no, payload=payload, ts=datetime.now(tz=UTC))
