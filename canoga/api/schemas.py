"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the UI layers (web, terminal,
mobile) and the engine. Everything is plain data: no response carries a
reference into engine objects.

Error Codes:
- CONFIG_ERROR: Board size or setting out of range
- WRONG_PHASE: Operation not allowed in the current phase
- INVALID_MOVE: Combination not legal for the pending roll
- ONE_DIE_NOT_ALLOWED: One die requested while 7..n are not all covered
- OUT_OF_RANGE: Square, die value, die count or history index out of range
- CORRUPT_SNAPSHOT: Save text could not be parsed
- SESSION_NOT_FOUND: Session does not exist or has expired
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    CREATED = "created"
    ACTIVE = "active"
    ROUND_OVER = "round_over"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class GameModeName(str, Enum):
    """Who controls each seat."""
    HUMAN_VS_COMPUTER = "HvsC"
    HUMAN_VS_HUMAN = "HvsH"
    COMPUTER_VS_COMPUTER = "CvsC"


class PlayerName(str, Enum):
    """Seat identifiers."""
    HUMAN = "HUMAN"
    COMPUTER = "COMPUTER"


class MoveKind(str, Enum):
    """Move types."""
    COVER = "cover"
    UNCOVER = "uncover"


class ErrorCode(str, Enum):
    """Structured error codes."""
    CONFIG_ERROR = "CONFIG_ERROR"
    WRONG_PHASE = "WRONG_PHASE"
    INVALID_MOVE = "INVALID_MOVE"
    ONE_DIE_NOT_ALLOWED = "ONE_DIE_NOT_ALLOWED"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    CORRUPT_SNAPSHOT = "CORRUPT_SNAPSHOT"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class BoardInfo(BaseModel):
    """One board: 0 = covered, n = square n uncovered."""
    size: int
    squares: list[int]
    covered: list[int] = Field(default_factory=list)
    uncovered: list[int] = Field(default_factory=list)


class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: PlayerName
    name: str
    is_human_controlled: bool
    is_current_turn: bool = False
    score: int = 0
    board: Optional[BoardInfo] = None

    model_config = {"from_attributes": True}


class DiceInfo(BaseModel):
    """A roll of one or two dice."""
    d1: int = Field(..., ge=1, le=6)
    d2: Optional[int] = Field(None, ge=1, le=6)
    total: int


class AdvantageInfo(BaseModel):
    """Advantage square and its protection."""
    player_id: PlayerName
    square: int
    unlocked: bool = False


class RoundResultInfo(BaseModel):
    """How a round ended."""
    winner: PlayerName
    win_type: MoveKind
    score: int


class RoundInfo(BaseModel):
    """State of the current round."""
    round_number: int
    board_size: int
    phase: str = Field(description="awaitingRoll, awaitingMove or roundOver")
    first_player_id: PlayerName
    current_player_id: PlayerName
    can_roll_one_die: bool = False
    pending_dice: Optional[DiceInfo] = None
    advantage_lock: Optional[AdvantageInfo] = None
    result: Optional[RoundResultInfo] = None


class MoveOptions(BaseModel):
    """Legal combinations for the pending roll."""
    cover: list[list[int]] = Field(default_factory=list)
    uncover: list[list[int]] = Field(default_factory=list)


class HistoryEntryInfo(BaseModel):
    """One rewindable point."""
    index: int
    label: str


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a session."""
    mode: GameModeName = GameModeName.HUMAN_VS_COMPUTER
    seed: Optional[int] = Field(None, description="Seed for reproducible dice")


class StartRoundRequest(BaseModel):
    """Request to start the next round."""
    board_size: Optional[int] = Field(None, description="9, 10 or 11; server default when omitted")
    first_player_id: Optional[PlayerName] = Field(
        None, description="Omit to decide by roll-off"
    )


class RollRequest(BaseModel):
    """Roll for the current player, or submit die values."""
    dice_count: Optional[int] = Field(None, description="1 or 2")
    values: Optional[list[int]] = Field(None, description="Manual die values")


class MoveRequest(BaseModel):
    """Apply a combination."""
    move_type: MoveKind
    squares: list[int] = Field(..., min_length=1)


class LoadSnapshotRequest(BaseModel):
    """Replace the session's game with save text."""
    text: str


class QueueRollsRequest(BaseModel):
    """Pre-load dice values consumed before random rolls."""
    rolls: list[list[int]] = Field(..., description="Each entry is [d1] or [d1, d2]")


# =============================================================================
# Responses
# =============================================================================

class ErrorResponse(BaseModel):
    """Structured error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    mode: GameModeName
    players: list[PlayerInfo] = Field(default_factory=list)
    round: Optional[RoundInfo] = None
    pending_advantage: Optional[AdvantageInfo] = None
    created_at: float = 0.0
    api_version: str = "v1"


class RollOffResponse(BaseModel):
    """Result of a roll-off."""
    session_id: str
    rolls: dict[str, int]
    first_player_id: Optional[PlayerName] = None
    tied: bool = False


class TurnResponse(BaseModel):
    """Result of a roll, move or automated run."""
    session_id: str
    success: bool = True
    dice: Optional[DiceInfo] = None
    options: MoveOptions = Field(default_factory=MoveOptions)
    can_move: bool = False
    turn_ended: bool = False
    changes: list[str] = Field(default_factory=list)
    automa_actions: list[str] = Field(default_factory=list)
    round_over: bool = False
    result: Optional[RoundResultInfo] = None
    state: Optional[SessionResponse] = None
    api_version: str = "v1"


class SuggestionResponse(BaseModel):
    """Help suggestion for the pending roll."""
    session_id: str
    action: Optional[MoveKind] = Field(None, description="None when no move is legal")
    squares: list[int] = Field(default_factory=list)
    reason: str = ""
    options: MoveOptions = Field(default_factory=MoveOptions)


class SnapshotResponse(BaseModel):
    """Save text of the current state."""
    session_id: str
    text: str


class HistoryResponse(BaseModel):
    """Rewindable history of the current round."""
    session_id: str
    entries: list[HistoryEntryInfo] = Field(default_factory=list)


class TournamentResultResponse(BaseModel):
    """Final scores of a match."""
    session_id: str
    winner: Optional[PlayerName] = Field(None, description="None for a draw")
    scores: dict[str, int]
    rounds_played: int


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
