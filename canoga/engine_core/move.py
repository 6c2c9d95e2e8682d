"""
Moves - What a player does with a dice total, and what came of it.

A Move names the actor, whether it covers their own squares or uncovers
the opponent's, the dice total it answers and the squares it toggles.
All squares toggle together or the move is rejected.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from .errors import InvalidMove
from .state import MoveType, PlayerId, RoundResult


@dataclass(frozen=True)
class Move:
    """
    A complete move.

    squares is stored sorted; the squares must be distinct and add up to
    dice_total.
    """
    actor: PlayerId
    move_type: MoveType
    dice_total: int
    squares: tuple[int, ...]

    def __post_init__(self):
        squares = tuple(sorted(self.squares))
        if not squares:
            raise InvalidMove("A move needs at least one square")
        if len(set(squares)) != len(squares):
            raise InvalidMove(f"Squares must be distinct, got {list(self.squares)}")
        if sum(squares) != self.dice_total:
            raise InvalidMove(
                f"Squares {list(squares)} add up to {sum(squares)}, not {self.dice_total}",
                details={"squares": list(squares), "dice_total": self.dice_total},
            )
        object.__setattr__(self, "squares", squares)

    @classmethod
    def cover(cls, actor: PlayerId, dice_total: int, squares) -> Move:
        """Factory for a cover move."""
        return cls(actor=actor, move_type=MoveType.COVER, dice_total=dice_total, squares=tuple(squares))

    @classmethod
    def uncover(cls, actor: PlayerId, dice_total: int, squares) -> Move:
        """Factory for an uncover move."""
        return cls(actor=actor, move_type=MoveType.UNCOVER, dice_total=dice_total, squares=tuple(squares))

    def describe(self) -> str:
        squares = ", ".join(str(s) for s in self.squares)
        return f"{self.actor.label} {self.move_type.value}s [{squares}]"


@dataclass
class MoveResult:
    """
    Result of driving one step of a round.

    Contains:
    - Whether the step succeeded
    - Errors (if failed)
    - Human-readable changes for the UI
    - The round result, if the step ended the round
    """
    success: bool
    error: str | None = None
    error_code: str | None = None

    move: Move | None = None
    changes: list[str] = field(default_factory=list)

    round_over: bool = False
    result: RoundResult | None = None

    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> MoveResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def applied(
        cls,
        move: Move | None,
        changes: list[str] | None = None,
        result: RoundResult | None = None,
    ) -> MoveResult:
        """Create a success result."""
        return cls(
            success=True,
            move=move,
            changes=changes or [],
            round_over=result is not None,
            result=result,
        )
