"""
Engine Core - The Canoga rule engine.

The engine:
1. Keeps each player's board of numbered squares
2. Finds the combinations a dice total allows
3. Runs the per-round turn state machine
4. Scores rounds and carries the advantage between them
"""

from .errors import (
    CanogaError,
    ConfigError,
    WrongPhase,
    InvalidMove,
    OneDieNotAllowed,
    OutOfRange,
    CorruptSnapshot,
)
from .state import (
    PlayerId,
    MoveType,
    WinType,
    RoundPhase,
    DiceRoll,
    Advantage,
    AdvantageLock,
    AdvantageContext,
    Player,
    RoundResult,
    MIN_BOARD_SIZE,
    MAX_BOARD_SIZE,
)
from .board import Board, CombinationMode
from .move import Move, MoveResult
from .dice import Dice, StandardDice
from .round import Round, RollOutcome, validate_board_size
from .tournament import Tournament, RollOff, RoundSummary, digit_sum

__all__ = [
    "CanogaError",
    "ConfigError",
    "WrongPhase",
    "InvalidMove",
    "OneDieNotAllowed",
    "OutOfRange",
    "CorruptSnapshot",
    "PlayerId",
    "MoveType",
    "WinType",
    "RoundPhase",
    "DiceRoll",
    "Advantage",
    "AdvantageLock",
    "AdvantageContext",
    "Player",
    "RoundResult",
    "MIN_BOARD_SIZE",
    "MAX_BOARD_SIZE",
    "Board",
    "CombinationMode",
    "Move",
    "MoveResult",
    "Dice",
    "StandardDice",
    "Round",
    "RollOutcome",
    "validate_board_size",
    "Tournament",
    "RollOff",
    "RoundSummary",
    "digit_sum",
]
