"""
Pytest fixtures for Canoga tests.
"""

import pytest

from ..engine_core.dice import StandardDice
from ..engine_core.round import Round
from ..engine_core.state import PlayerId
from ..engine_core.tournament import Tournament
from ..session import GameLoop, GameMode, SessionManager


def board_array(size: int, covered=()) -> list[int]:
    """Board array with the given squares covered."""
    return [0 if n in covered else n for n in range(1, size + 1)]


@pytest.fixture
def fresh_round() -> Round:
    """A 9-square round with the human moving first."""
    return Round(9, PlayerId.HUMAN)


@pytest.fixture
def queued_dice() -> StandardDice:
    """Seeded dice; tests enqueue the values they need."""
    return StandardDice(seed=7)


@pytest.fixture
def tournament() -> Tournament:
    return Tournament()


@pytest.fixture
def near_cover_win() -> Round:
    """
    Human has only square 9 uncovered, computer has 1..5 uncovered.

    Both players have played; it is the human's roll.
    """
    return Round.resume(
        boards={
            PlayerId.HUMAN: board_array(9, covered=range(1, 9)),
            PlayerId.COMPUTER: board_array(9, covered=range(6, 10)),
        },
        first_player=PlayerId.HUMAN,
        current_player=PlayerId.HUMAN,
    )


@pytest.fixture
def manager() -> SessionManager:
    return SessionManager()


@pytest.fixture
def hvc_loop(manager: SessionManager) -> GameLoop:
    """Human vs computer session, no round started."""
    session = manager.create_session(GameMode.HUMAN_VS_COMPUTER, seed=11)
    return GameLoop(session)
