from __future__ import annotations

import math

from sprouts.config import SproutsSettings
from sprouts.core.game import GameState, new_game
from sprouts.core.geometry import GeometryProvider, Location, ShapelyGeometry


def starting_layout(*, count: int, radius: float, center: tuple[float, float] = (0.0, 0.0)) -> list[Location]:
    """Return `count` locations evenly spaced on a circle.

    Point 0 sits straight "up" from the center (negative y, screen coordinates)
    and the rest follow clockwise.
    """

    if count < 1:
        raise ValueError("count must be a positive integer")

    cx, cy = center
    out: list[Location] = []
    for i in range(count):
        angle = i * 2 * math.pi / count
        out.append((cx + math.sin(angle) * radius, cy - math.cos(angle) * radius))
    return out


def build_game(
    *,
    settings: SproutsSettings,
    starting_point_count: int | None = None,
    geometry: GeometryProvider | None = None,
) -> GameState:
    count = settings.starting_point_count if starting_point_count is None else starting_point_count
    if geometry is None:
        geometry = ShapelyGeometry(endpoint_tolerance=settings.endpoint_tolerance)

    locations = starting_layout(count=count, radius=settings.layout_radius, center=settings.layout_center)
    return new_game(geometry=geometry, locations=locations)
