"""
Session Manager - Creates and manages game sessions.

A session is one match (tournament) between two seats:
- Created when a driver starts a game in one of the three modes
- Holds the tournament, the dice, the rewind history and the bots
- Destroyed when the driver ends it or it goes stale

Sessions live in memory only. The save-file text (see snapshot.codec)
is the only way a game outlives its session.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
import logging
import time
import uuid

from ..bots import BotPolicy, StrategyPolicy
from ..engine_core.dice import StandardDice
from ..engine_core.round import Round
from ..engine_core.state import PlayerId
from ..engine_core.tournament import Tournament
from ..snapshot import History

logger = logging.getLogger(__name__)


class GameMode(Enum):
    """Who controls each seat."""
    HUMAN_VS_COMPUTER = "HvsC"
    HUMAN_VS_HUMAN = "HvsH"
    COMPUTER_VS_COMPUTER = "CvsC"

    @property
    def label(self) -> str:
        return {
            GameMode.HUMAN_VS_COMPUTER: "Human vs Computer",
            GameMode.HUMAN_VS_HUMAN: "Human vs Human",
            GameMode.COMPUTER_VS_COMPUTER: "Computer vs Computer",
        }[self]

    def is_human_controlled(self, player_id: PlayerId) -> bool:
        if self is GameMode.HUMAN_VS_HUMAN:
            return True
        if self is GameMode.COMPUTER_VS_COMPUTER:
            return False
        return player_id is PlayerId.HUMAN


class SessionState(Enum):
    """State of a game session."""
    CREATED = "created"  # No round started yet
    ACTIVE = "active"  # Round in progress
    ROUND_OVER = "round_over"  # Waiting for the next round to start
    GAME_OVER = "game_over"  # Tournament finished
    ABANDONED = "abandoned"  # Ended early or expired


@dataclass
class Session:
    """
    An ephemeral match.

    Contains:
    - The tournament (and through it the current round)
    - Dice (RNG plus queued rolls)
    - Rewind history for the current round
    - One BotPolicy per computer-controlled seat
    """
    session_id: str
    created_at: float
    mode: GameMode = GameMode.HUMAN_VS_COMPUTER

    state: SessionState = SessionState.CREATED
    tournament: Tournament = field(default_factory=Tournament)
    dice: StandardDice = field(default_factory=StandardDice)
    history: History = field(default_factory=History)

    bots: dict[PlayerId, BotPolicy] = field(default_factory=dict)
    help_policy: BotPolicy = field(default_factory=StrategyPolicy)

    @property
    def round(self) -> Round | None:
        return self.tournament.current_round

    def is_active(self) -> bool:
        return self.state in {SessionState.CREATED, SessionState.ACTIVE, SessionState.ROUND_OVER}

    def is_human_turn(self) -> bool:
        if self.round is None or self.round.over:
            return False
        return self.mode.is_human_controlled(self.round.current_player)

    def player_name(self, player_id: PlayerId) -> str:
        """Display name adjusted for the mode."""
        if self.mode is GameMode.HUMAN_VS_HUMAN:
            return "Player 1 (Human)" if player_id is PlayerId.HUMAN else "Player 2 (Human)"
        if self.mode is GameMode.COMPUTER_VS_COMPUTER:
            return "Player 1 (Computer)" if player_id is PlayerId.HUMAN else "Player 2 (Computer)"
        return player_id.label


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with bots for computer-controlled seats
    - Track active sessions
    - Clean up ended or stale sessions
    """

    def __init__(self, policy_factory: Callable[[], BotPolicy] = StrategyPolicy):
        self._sessions: dict[str, Session] = {}
        self._policy_factory = policy_factory

    def create_session(
        self,
        mode: GameMode = GameMode.HUMAN_VS_COMPUTER,
        seed: int | None = None,
    ) -> Session:
        """
        Create a new session.

        Args:
            mode: Which seats are computer-controlled
            seed: Optional RNG seed for reproducible dice

        Returns:
            New Session with no round started
        """
        bots = {
            pid: self._policy_factory()
            for pid in PlayerId
            if not mode.is_human_controlled(pid)
        }
        session = Session(
            session_id=str(uuid.uuid4()),
            created_at=time.time(),
            mode=mode,
            dice=StandardDice(seed=seed),
            bots=bots,
        )
        self._sessions[session.session_id] = session
        logger.info("Session %s created (%s)", session.session_id, mode.label)
        return session

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """Remove a session. Returns False if it did not exist."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.state = SessionState.GAME_OVER if reason == "completed" else SessionState.ABANDONED
        session.history.clear()
        logger.info("Session %s ended (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        return [sid for sid, session in self._sessions.items() if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """
        End sessions older than max_age that are between rounds or finished.

        Returns the IDs removed.
        """
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds
            and session.state is not SessionState.ACTIVE
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return stale
