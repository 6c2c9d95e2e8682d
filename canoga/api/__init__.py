"""
API Module - REST API for Canoga drivers.

Provides:
- Pydantic schemas for requests and responses
- APIService: framework-agnostic business logic
- create_app: FastAPI application factory

Run with:
    canoga serve
or
    uvicorn canoga.api.app:create_app --factory
"""

from .schemas import (
    # Enums
    SessionStatus,
    GameModeName,
    PlayerName,
    MoveKind,
    ErrorCode,
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
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
)
from .service import APIService, SessionNotFound
from .app import create_app

__all__ = [
    "SessionStatus",
    "GameModeName",
    "PlayerName",
    "MoveKind",
    "ErrorCode",
    "CreateSessionRequest",
    "StartRoundRequest",
    "RollRequest",
    "MoveRequest",
    "LoadSnapshotRequest",
    "QueueRollsRequest",
    "SessionResponse",
    "RollOffResponse",
    "TurnResponse",
    "SuggestionResponse",
    "SnapshotResponse",
    "HistoryResponse",
    "TournamentResultResponse",
    "ErrorResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "HealthResponse",
    "APIService",
    "SessionNotFound",
    "create_app",
]
