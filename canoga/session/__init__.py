"""
Session Module - Drives matches for the outer layers.

A session is one match between two seats, in one of three modes:
Human vs Computer, Human vs Human, Computer vs Computer. The game loop
turns driver requests (roll, move, help, save, rewind) into engine calls.
"""

from .manager import SessionManager, Session, SessionState, GameMode
from .game_loop import GameLoop, TurnResult

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameMode",
    "GameLoop",
    "TurnResult",
]
