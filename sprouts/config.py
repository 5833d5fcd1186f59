from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SproutsSettings:
    starting_point_count: int = 6
    # Starting points sit on a circle around the layout center.
    layout_radius: float = 150.0
    layout_center: tuple[float, float] = (0.0, 0.0)
    # Distance under which path ends are treated as touching.
    endpoint_tolerance: float = 1e-6

    def __post_init__(self) -> None:
        if self.starting_point_count < 1:
            raise ValueError("starting_point_count must be a positive integer")
        if self.layout_radius <= 0:
            raise ValueError("layout_radius must be positive")
        if self.endpoint_tolerance < 0:
            raise ValueError("endpoint_tolerance must not be negative")


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from e


def _float_from_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number (got {raw!r})") from e


def settings_from_env() -> SproutsSettings:
    return SproutsSettings(
        starting_point_count=_int_from_env("SPROUTS_STARTING_POINT_COUNT", 6),
        layout_radius=_float_from_env("SPROUTS_LAYOUT_RADIUS", 150.0),
        layout_center=(
            _float_from_env("SPROUTS_LAYOUT_CENTER_X", 0.0),
            _float_from_env("SPROUTS_LAYOUT_CENTER_Y", 0.0),
        ),
        endpoint_tolerance=_float_from_env("SPROUTS_ENDPOINT_TOLERANCE", 1e-6),
    )
