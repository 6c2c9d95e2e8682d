"""
Engine State - Identifiers, enums and small records shared by the engine.

Design principles:
- Plain dataclasses, no back-references between records
- Player is a single record; who supplies moves is injected elsewhere
- Advantage state lives on Round/Tournament instances, never globally
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .errors import OutOfRange

if TYPE_CHECKING:
    from .board import Board


MIN_BOARD_SIZE = 9
MAX_BOARD_SIZE = 11
DIE_FACES = 6


class PlayerId(Enum):
    """The two seats at the table. HUMAN is player A, COMPUTER is player B."""
    HUMAN = "HUMAN"
    COMPUTER = "COMPUTER"

    @property
    def opponent(self) -> PlayerId:
        return PlayerId.COMPUTER if self is PlayerId.HUMAN else PlayerId.HUMAN

    @property
    def label(self) -> str:
        """Label used in save files ("Human" / "Computer")."""
        return self.value.capitalize()

    @classmethod
    def from_label(cls, label: str) -> PlayerId:
        normalized = label.strip().upper()
        for player_id in cls:
            if player_id.value == normalized:
                return player_id
        raise ValueError(f"Unknown player label: {label!r}")


class MoveType(Enum):
    """The two kinds of move."""
    COVER = "cover"
    UNCOVER = "uncover"


class WinType(Enum):
    """How a round was won."""
    COVER = "cover"
    UNCOVER = "uncover"


class RoundPhase(Enum):
    """Turn state machine phases."""
    AWAITING_ROLL = "awaitingRoll"
    AWAITING_MOVE = "awaitingMove"
    ROUND_OVER = "roundOver"

    @classmethod
    def parse(cls, text: str) -> RoundPhase:
        """Accept "awaitingRoll", "awaiting roll", "AWAITING_ROLL", ..."""
        key = text.strip().replace(" ", "").replace("_", "").lower()
        for phase in cls:
            if phase.value.lower() == key:
                return phase
        raise ValueError(f"Unknown phase: {text!r}")


@dataclass(frozen=True)
class DiceRoll:
    """One roll of one or two dice. d2 is None for a one-die roll."""
    d1: int
    d2: int | None = None

    def __post_init__(self):
        for value in (self.d1, self.d2):
            if value is None:
                continue
            if not isinstance(value, int) or not 1 <= value <= DIE_FACES:
                raise OutOfRange(
                    f"Die values must be between 1 and {DIE_FACES}, got {value!r}",
                    details={"value": value},
                )

    @property
    def count(self) -> int:
        return 1 if self.d2 is None else 2

    @property
    def total(self) -> int:
        return self.d1 + (self.d2 or 0)

    @classmethod
    def of(cls, values: list[int] | tuple[int, ...]) -> DiceRoll:
        """Build from a list of one or two die values."""
        if len(values) not in (1, 2):
            raise OutOfRange(
                f"Expected 1 or 2 die values, got {len(values)}",
                details={"values": list(values)},
            )
        return cls(d1=values[0], d2=values[1] if len(values) == 2 else None)

    def values(self) -> list[int]:
        return [self.d1] if self.d2 is None else [self.d1, self.d2]


@dataclass(frozen=True)
class Advantage:
    """A handicap carried into the next round: `square` pre-covered for `player`."""
    player: PlayerId
    square: int


@dataclass
class AdvantageLock:
    """
    Protection of the pre-covered advantage square.

    While `unlocked` is False the opponent may not uncover `square` on the
    holder's board. It flips once the holder's opponent completes a turn.
    """
    holder: PlayerId
    square: int
    unlocked: bool = False

    @property
    def active(self) -> bool:
        return not self.unlocked

    def copy(self) -> AdvantageLock:
        return AdvantageLock(holder=self.holder, square=self.square, unlocked=self.unlocked)


@dataclass(frozen=True)
class AdvantageContext:
    """
    What the combination finder needs to know about the advantage lock.

    Passed explicitly into Board.find_combinations so boards never reach
    up into the round or tournament.
    """
    holder: PlayerId
    square: int
    unlocked: bool

    @classmethod
    def from_lock(cls, lock: AdvantageLock | None) -> AdvantageContext | None:
        if lock is None:
            return None
        return cls(holder=lock.holder, square=lock.square, unlocked=lock.unlocked)


@dataclass
class Player:
    """
    A seat in the tournament.

    cumulative_score only ever grows; the board is replaced at every
    round start.
    """
    player_id: PlayerId
    name: str
    board: Board | None = None
    cumulative_score: int = 0

    def add_to_score(self, points: int):
        if points < 0:
            raise ValueError("Score delta must not be negative")
        self.cumulative_score += points


@dataclass(frozen=True)
class RoundResult:
    """Frozen outcome of a finished round."""
    winner: PlayerId
    win_type: WinType
    score: int
