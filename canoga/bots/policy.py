"""
Bot Policy - Interface for move selection, and the Canoga heuristic.

A BotPolicy looks at a round and a dice total and proposes a move. It
never mutates the round; the driver applies the returned move.

StrategyPolicy is used both for the automated opponent and for "help"
suggestions to a human player:

1. No cover and no uncover option -> no move.
2. A cover option that covers every remaining own square wins at once.
3. Otherwise an uncover option that uncovers every covered opponent
   square wins at once.
4. Otherwise cover if possible, else uncover.
5. Within the chosen set, prefer more squares, then the highest single
   square. Remaining ties keep the first combination found.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..engine_core.move import Move
from ..engine_core.state import MoveType, PlayerId

if TYPE_CHECKING:
    from ..engine_core.board import Board
    from ..engine_core.round import Round


@dataclass
class BotDecision:
    """
    A decision made by a policy.

    Contains:
    - The chosen move type (None when nothing is legal)
    - The squares to toggle
    - Explanation (for UI/help)
    - Every option that was considered
    """
    action: MoveType | None
    squares: tuple[int, ...] = ()
    reason: str = ""
    dice_total: int = 0
    actor: PlayerId | None = None

    cover_options: list[tuple[int, ...]] = field(default_factory=list)
    uncover_options: list[tuple[int, ...]] = field(default_factory=list)

    @property
    def is_pass(self) -> bool:
        return self.action is None

    def to_move(self) -> Move | None:
        """The decision as an applicable Move (None for no move)."""
        if self.action is None:
            return None
        return Move(actor=self.actor, move_type=self.action, dice_total=self.dice_total, squares=self.squares)

    def describe(self) -> str:
        if self.action is None:
            return "No move"
        return f"{self.action.value.upper()} [{', '.join(str(s) for s in self.squares)}]"


class BotPolicy(ABC):
    """
    Abstract base class for move-selection policies.

    A policy is a capability injected per player; Human and Computer are
    the same Player record either way.
    """

    @abstractmethod
    def decide(self, round_: Round, actor: PlayerId, dice_total: int) -> BotDecision:
        """
        Choose a move for actor given dice_total.

        Args:
            round_: Current round (read only)
            actor: Player to move
            dice_total: Sum of the rolled dice

        Returns:
            BotDecision with the chosen squares
        """
        pass

    @abstractmethod
    def choose_dice_count(self, board: Board) -> int:
        """How many dice to roll (1 or 2) on this board."""
        pass

    def get_name(self) -> str:
        """Get the policy's name/identifier."""
        return self.__class__.__name__


def _strength(combo: tuple[int, ...]) -> tuple[int, int]:
    return len(combo), max(combo)


def pick_best_combo(options: list[tuple[int, ...]]) -> tuple[int, ...]:
    """Most squares first, then the highest single square; first wins ties."""
    best = options[0]
    for candidate in options[1:]:
        if _strength(candidate) > _strength(best):
            best = candidate
    return best


class StrategyPolicy(BotPolicy):
    """The fixed Canoga heuristic."""

    def decide(self, round_: Round, actor: PlayerId, dice_total: int) -> BotDecision:
        cover = round_.legal_moves(actor, MoveType.COVER, dice_total)
        uncover = round_.legal_moves(actor, MoveType.UNCOVER, dice_total)

        def decision(action, squares=(), reason=""):
            return BotDecision(
                action=action,
                squares=tuple(squares),
                reason=reason,
                dice_total=dice_total,
                actor=actor,
                cover_options=cover,
                uncover_options=uncover,
            )

        if not cover and not uncover:
            return decision(None, reason="No legal moves for this dice total.")

        own_uncovered = len(round_.board(actor).uncovered)
        for combo in cover:
            if len(combo) == own_uncovered:
                return decision(
                    MoveType.COVER, combo,
                    "This move covers all your remaining squares and wins the round.",
                )

        opponent_covered = len(round_.board(actor.opponent).covered)
        for combo in uncover:
            if len(combo) == opponent_covered:
                return decision(
                    MoveType.UNCOVER, combo,
                    "This move uncovers all of the opponent's squares and wins the round.",
                )

        if cover:
            return decision(
                MoveType.COVER, pick_best_combo(cover),
                "No winning move. Cover with the most squares, highest square first.",
            )
        return decision(
            MoveType.UNCOVER, pick_best_combo(uncover),
            "No winning move and nothing to cover. Uncover with the most squares, highest square first.",
        )

    def choose_dice_count(self, board: Board) -> int:
        return 1 if board.can_use_one_die() else 2
