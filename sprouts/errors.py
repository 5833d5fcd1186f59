from __future__ import annotations

from enum import StrEnum


class RejectionReason(StrEnum):
    degree_exceeded = "degree_exceeded"
    self_intersection = "self_intersection"
    game_finished = "game_finished"


class SproutsError(Exception):
    """Base class for every error raised by the engine."""


class MoveRejected(SproutsError, ValueError):
    """A move attempt that was refused before anything was committed.

    Subclasses carry a `reason` so callers can report the rejection without
    string matching.
    """

    reason: RejectionReason


class DegreeExceeded(MoveRejected):
    reason = RejectionReason.degree_exceeded


class SelfIntersection(MoveRejected):
    reason = RejectionReason.self_intersection


class GameFinished(MoveRejected):
    reason = RejectionReason.game_finished


class InvariantViolation(SproutsError, RuntimeError):
    """The region tree or graph reached an inconsistent state.

    This is a programming error, not a user mistake; the pending mutation is
    rolled back before it propagates.
    """
