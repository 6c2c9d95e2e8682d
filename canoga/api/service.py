"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to game loop calls
2. Manages sessions
3. Formats engine state as plain response models

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Engine errors propagate as CanogaError; the web layer maps them to
ErrorResponse bodies.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    CreateSessionRequest,
    StartRoundRequest,
    RollRequest,
    MoveRequest,
    LoadSnapshotRequest,
    QueueRollsRequest,
    # Responses
    SessionResponse,
    RollOffResponse,
    TurnResponse,
    SuggestionResponse,
    SnapshotResponse,
    HistoryResponse,
    TournamentResultResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    BoardInfo,
    DiceInfo,
    AdvantageInfo,
    RoundInfo,
    RoundResultInfo,
    MoveOptions,
    HistoryEntryInfo,
    # Enums
    SessionStatus,
    GameModeName,
    PlayerName,
    MoveKind,
    ErrorCode,
)
from ..config import Settings
from ..engine_core.errors import CanogaError
from ..engine_core.state import DiceRoll, MoveType, PlayerId, RoundResult
from ..session import GameLoop, GameMode, Session, SessionManager, TurnResult

logger = logging.getLogger(__name__)


class SessionNotFound(CanogaError):
    """No live session with the given ID."""

    error_code = "SESSION_NOT_FOUND"


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest(mode="HvsC"))
        service.start_round(session.session_id, StartRoundRequest(board_size=9))
        service.roll(session.session_id, RollRequest(dice_count=2))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    settings: Settings = field(default_factory=Settings)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """Create a new game session."""
        session = self.session_manager.create_session(
            mode=GameMode(request.mode.value),
            seed=request.seed,
        )
        self._game_loops[session.session_id] = GameLoop(
            session, max_steps=self.settings.autoplay_max_steps
        )
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """Get session status."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
                details={"session_id": session_id},
            )
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        """End a session and release its loop."""
        self._game_loops.pop(session_id, None)
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def cleanup(self) -> list[str]:
        """Drop sessions older than the configured TTL."""
        removed = self.session_manager.cleanup_stale_sessions(self.settings.session_ttl)
        for session_id in removed:
            self._game_loops.pop(session_id, None)
        return removed

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    def roll_off(self, session_id: str) -> RollOffResponse:
        """A single roll-off; a tie is reported, not re-rolled."""
        loop = self._loop(session_id)
        outcome = loop.roll_off()
        return RollOffResponse(
            session_id=session_id,
            rolls={pid.name: total for pid, total in outcome.rolls.items()},
            first_player_id=PlayerName(outcome.first_player.name) if outcome.first_player else None,
            tied=outcome.tied,
        )

    def start_round(self, session_id: str, request: StartRoundRequest) -> TurnResponse:
        loop = self._loop(session_id)
        board_size = request.board_size or self.settings.default_board_size
        first = PlayerId[request.first_player_id.value] if request.first_player_id else None
        result = loop.start_round(board_size, first)
        return self._turn_to_response(loop.session, result)

    def roll(self, session_id: str, request: RollRequest) -> TurnResponse:
        loop = self._loop(session_id)
        result = loop.roll(count=request.dice_count, values=request.values)
        return self._turn_to_response(loop.session, result)

    def legal_moves(self, session_id: str) -> MoveOptions:
        loop = self._loop(session_id)
        return self._options(loop.legal_moves())

    def apply_move(self, session_id: str, request: MoveRequest) -> TurnResponse:
        loop = self._loop(session_id)
        move_result = loop.apply_move(MoveType(request.move_type.value), request.squares)
        round_ = loop.round
        return TurnResponse(
            session_id=session_id,
            success=move_result.success,
            changes=move_result.changes,
            round_over=round_.over,
            result=self._result_info(round_.result),
            state=self._session_to_response(loop.session),
        )

    def suggest(self, session_id: str) -> SuggestionResponse:
        loop = self._loop(session_id)
        decision = loop.suggest()
        return SuggestionResponse(
            session_id=session_id,
            action=MoveKind(decision.action.value) if decision.action else None,
            squares=list(decision.squares),
            reason=decision.reason,
            options=MoveOptions(
                cover=[list(c) for c in decision.cover_options],
                uncover=[list(c) for c in decision.uncover_options],
            ),
        )

    def run_automa(self, session_id: str) -> TurnResponse:
        loop = self._loop(session_id)
        result = loop.run_automa()
        return self._turn_to_response(loop.session, result)

    def queue_rolls(self, session_id: str, request: QueueRollsRequest) -> SessionResponse:
        """Append pre-loaded rolls to the session dice."""
        loop = self._loop(session_id)
        rolls = [DiceRoll.of(values) for values in request.rolls]
        loop.session.dice.queue.extend(rolls)
        return self._session_to_response(loop.session)

    def finish_tournament(self, session_id: str) -> TournamentResultResponse:
        loop = self._loop(session_id)
        winner = loop.finish_tournament()
        return TournamentResultResponse(
            session_id=session_id,
            winner=PlayerName(winner.name) if winner else None,
            scores={pid.name: score for pid, score in loop.tournament.scores().items()},
            rounds_played=loop.tournament.rounds_played,
        )

    # ------------------------------------------------------------------
    # Save / load / rewind
    # ------------------------------------------------------------------

    def save(self, session_id: str) -> SnapshotResponse:
        loop = self._loop(session_id)
        return SnapshotResponse(session_id=session_id, text=loop.save())

    def load(self, session_id: str, request: LoadSnapshotRequest) -> TurnResponse:
        loop = self._loop(session_id)
        result = loop.load(request.text)
        return self._turn_to_response(loop.session, result)

    def history(self, session_id: str) -> HistoryResponse:
        loop = self._loop(session_id)
        return HistoryResponse(
            session_id=session_id,
            entries=[HistoryEntryInfo(index=i, label=label) for i, label in loop.history_entries()],
        )

    def rewind(self, session_id: str, index: int) -> TurnResponse:
        loop = self._loop(session_id)
        result = loop.rewind(index)
        return self._turn_to_response(loop.session, result)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _loop(self, session_id: str) -> GameLoop:
        loop = self._game_loops.get(session_id)
        if loop is None or self.session_manager.get_session(session_id) is None:
            raise SessionNotFound(
                f"Session {session_id} not found",
                details={"session_id": session_id},
            )
        return loop

    @staticmethod
    def _options(options: dict[MoveType, list[tuple[int, ...]]]) -> MoveOptions:
        return MoveOptions(
            cover=[list(c) for c in options.get(MoveType.COVER, [])],
            uncover=[list(c) for c in options.get(MoveType.UNCOVER, [])],
        )

    @staticmethod
    def _dice_info(roll: DiceRoll | None) -> DiceInfo | None:
        if roll is None:
            return None
        return DiceInfo(d1=roll.d1, d2=roll.d2, total=roll.total)

    @staticmethod
    def _result_info(result: RoundResult | None) -> RoundResultInfo | None:
        if result is None:
            return None
        return RoundResultInfo(
            winner=PlayerName(result.winner.name),
            win_type=MoveKind(result.win_type.value),
            score=result.score,
        )

    def _turn_to_response(self, session: Session, result: TurnResult) -> TurnResponse:
        return TurnResponse(
            session_id=session.session_id,
            success=result.success,
            dice=self._dice_info(result.roll),
            options=MoveOptions(
                cover=[list(c) for c in result.cover_options],
                uncover=[list(c) for c in result.uncover_options],
            ),
            can_move=bool(result.cover_options or result.uncover_options),
            turn_ended=result.turn_ended,
            changes=result.changes,
            automa_actions=result.automa_actions,
            round_over=result.round_over,
            result=self._result_info(result.result),
            state=self._session_to_response(session),
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        round_ = session.round
        players = []
        for pid, player in session.tournament.players.items():
            board = None
            if player.board is not None:
                board = BoardInfo(
                    size=player.board.size,
                    squares=player.board.to_array(),
                    covered=player.board.covered,
                    uncovered=player.board.uncovered,
                )
            players.append(PlayerInfo(
                player_id=PlayerName(pid.name),
                name=session.player_name(pid),
                is_human_controlled=session.mode.is_human_controlled(pid),
                is_current_turn=round_ is not None and not round_.over and round_.current_player is pid,
                score=player.cumulative_score,
                board=board,
            ))

        round_info = None
        if round_ is not None:
            lock = round_.advantage_lock
            round_info = RoundInfo(
                round_number=session.tournament.round_number,
                board_size=round_.board_size,
                phase=round_.phase.value,
                first_player_id=PlayerName(round_.first_player.name),
                current_player_id=PlayerName(round_.current_player.name),
                can_roll_one_die=not round_.over and round_.can_use_one_die(),
                pending_dice=self._dice_info(round_.pending_roll),
                advantage_lock=AdvantageInfo(
                    player_id=PlayerName(lock.holder.name),
                    square=lock.square,
                    unlocked=lock.unlocked,
                ) if lock else None,
                result=self._result_info(round_.result),
            )

        pending = session.tournament.pending_advantage
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus(session.state.value),
            mode=GameModeName(session.mode.value),
            players=players,
            round=round_info,
            pending_advantage=AdvantageInfo(
                player_id=PlayerName(pending.player.name),
                square=pending.square,
            ) if pending else None,
            created_at=session.created_at,
        )
