from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sprouts.core.geometry import PathHandle
from sprouts.errors import GameFinished, SelfIntersection

if TYPE_CHECKING:
    from sprouts.core.game import GameState


@dataclass(frozen=True, slots=True)
class MoveContext:
    """Inputs available to validators: a drawn but uncommitted path."""

    origin_id: int
    candidate_id: int
    path: PathHandle


class MoveValidator(ABC):
    """A small, composable check run before a move is committed.

    Validators raise a MoveRejected subclass and never mutate the game.
    """

    @abstractmethod
    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class GameActiveValidator(MoveValidator):
    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        if not state.active:
            raise GameFinished("Game is finished")


@dataclass(frozen=True, slots=True)
class DegreeValidator(MoveValidator):
    """Both ends need a free connection; a loop needs two on its point."""

    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        state.graph.check_can_connect(ctx.origin_id, ctx.candidate_id)


@dataclass(frozen=True, slots=True)
class SelfCrossingValidator(MoveValidator):
    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        if state.geometry.paths_intersect(ctx.path, ctx.path):
            raise SelfIntersection("Path crosses itself")


@dataclass(frozen=True, slots=True)
class PointClearanceValidator(MoveValidator):
    """A line may touch only its own two points."""

    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        for p in state.graph.points:
            if p.point_id in (ctx.origin_id, ctx.candidate_id):
                continue
            if state.geometry.passes_through(ctx.path, p.location):
                raise SelfIntersection(f"Path passes through point {p.point_id}")


@dataclass(frozen=True, slots=True)
class EdgeCrossingValidator(MoveValidator):
    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        for e in state.graph.edges.values():
            if state.geometry.paths_intersect(e.path, ctx.path):
                raise SelfIntersection(f"Path crosses edge {e.edge_id}")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[MoveValidator, ...]

    def validate(self, *, ctx: MoveContext, state: GameState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


# Cheap checks first; the geometric ones walk every edge.
DEFAULT_MOVE_PIPELINE = ValidatorPipeline(
    validators=(
        GameActiveValidator(),
        DegreeValidator(),
        SelfCrossingValidator(),
        PointClearanceValidator(),
        EdgeCrossingValidator(),
    )
)
