from __future__ import annotations

from sprouts.core.game import GameState
from sprouts.core.regions import Region
from sprouts.turn_processing.turns import current_player, winner


def _point_label(state: GameState, point_id: int) -> str:
    p = state.graph.point(point_id)
    return f"{point_id}{'' if p.active else '*'}"


def _region_line(state: GameState, region: Region, depth: int) -> str:
    inner = ", ".join(_point_label(state, pid) for pid in region.inner_points) or "-"
    if region.parent_id is None:
        return f"{'  ' * depth}region {region.region_id} (outer): inner [{inner}]"
    boundary = ", ".join(_point_label(state, pid) for pid in region.boundary_points)
    return f"{'  ' * depth}region {region.region_id}: boundary [{boundary}] inner [{inner}]"


def region_tree_to_text(*, state: GameState) -> str:
    """Indented outline of the region tree; inactive points are starred."""

    lines: list[str] = []
    stack: list[tuple[int, int]] = [(state.regions.root.region_id, 0)]
    while stack:
        rid, depth = stack.pop()
        region = state.regions.region(rid)
        lines.append(_region_line(state, region, depth))
        stack.extend((cid, depth + 1) for cid in reversed(region.inner_regions))
    return "\n".join(lines)


def game_state_to_paragraph(*, state: GameState) -> str:
    """Short plain-text summary used by the summary endpoint and in logs."""

    active = sum(1 for p in state.graph.points if p.active)
    parts = [
        f"{len(state.graph.points)} points ({active} active), {len(state.graph.edges)} lines, "
        f"{len(state.regions.regions)} regions after {state.moves_made} moves."
    ]
    if state.active:
        parts.append(f"Player {current_player(state=state) + 1} to move.")
    else:
        parts.append(f"Game over: player {winner(state=state) + 1} wins.")
    return " ".join(parts)
