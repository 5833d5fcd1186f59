from __future__ import annotations

from collections.abc import Generator

from sprouts.config import settings_from_env
from sprouts.game_store import GameStore, init_store


def get_store() -> Generator[GameStore, None, None]:
    yield init_store(settings=settings_from_env())
