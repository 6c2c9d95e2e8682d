"""
FastAPI Application - REST API for Canoga drivers.

Endpoints:
    POST   /api/v1/sessions                        Create game session
    GET    /api/v1/sessions                        List active sessions
    GET    /api/v1/sessions/{id}                   Get session status
    DELETE /api/v1/sessions/{id}                   End session
    POST   /api/v1/sessions/{id}/roll-off          One roll-off
    POST   /api/v1/sessions/{id}/rounds            Start the next round
    POST   /api/v1/sessions/{id}/roll              Roll (or enter dice)
    POST   /api/v1/sessions/{id}/dice-queue        Queue dice values
    GET    /api/v1/sessions/{id}/moves             Legal moves for the pending roll
    POST   /api/v1/sessions/{id}/moves             Apply a move
    GET    /api/v1/sessions/{id}/help              Suggested move
    POST   /api/v1/sessions/{id}/automa            Play computer turns
    GET    /api/v1/sessions/{id}/snapshot          Save text
    POST   /api/v1/sessions/{id}/snapshot          Load save text
    GET    /api/v1/sessions/{id}/history           Rewind points
    POST   /api/v1/sessions/{id}/history/{index}   Rewind
    POST   /api/v1/sessions/{id}/finish            End the match

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional

from ..config import Settings

# HTTP status per engine error code; everything else is 400
STATUS_BY_ERROR_CODE = {
    "WRONG_PHASE": 409,
    "SESSION_NOT_FOUND": 404,
}


def create_app(service=None, settings: Optional[Settings] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Path, Query, Request
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        StartRoundRequest,
        RollRequest,
        MoveRequest,
        LoadSnapshotRequest,
        QueueRollsRequest,
        # Response models
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
        MoveOptions,
        # Enums
        ErrorCode,
    )
    from .. import __version__
    from ..engine_core.errors import CanogaError

    settings = settings or (service.settings if service else Settings.from_env())
    api_service = service or APIService(settings=settings)

    app = FastAPI(
        title="Canoga Engine API",
        description="""
Canoga (Shut the Box) rule engine for web, terminal and mobile drivers.

## Turn Flow

1. `POST /rounds` starts a round (roll-off decides the first player if none is given)
2. `POST /roll` rolls for the current player; the response lists the legal moves
3. `POST /moves` applies one of them; the same player then rolls again
4. A roll with no legal moves ends the turn automatically
5. `POST /automa` plays computer-controlled turns until a human is up

## Error Codes

| Code | Description |
|------|-------------|
| `CONFIG_ERROR` | Board size or setting out of range |
| `WRONG_PHASE` | Operation not allowed in the current phase (409) |
| `INVALID_MOVE` | Combination not legal for the pending roll |
| `ONE_DIE_NOT_ALLOWED` | Squares 7 and up are not all covered |
| `OUT_OF_RANGE` | Square, die value, die count or history index out of range |
| `CORRUPT_SNAPSHOT` | Save text could not be parsed |
| `SESSION_NOT_FOUND` | Session does not exist (404) |
| `VALIDATION_ERROR` | Request body failed validation (422) |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(CanogaError)
    async def engine_error_handler(request: Request, exc: CanogaError) -> JSONResponse:
        return make_error_response(
            ErrorCode.__members__.get(exc.error_code, ErrorCode.INTERNAL_ERROR),
            exc.message,
            status_code=STATUS_BY_ERROR_CODE.get(exc.error_code, 400),
            details=exc.details or None,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            status_code=422,
            details={"errors": [
                {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
                for err in exc.errors()
            ]},
        )

    not_found = {404: {"model": ErrorResponse, "description": "Session not found"}}
    engine_errors = {
        400: {"model": ErrorResponse, "description": "Rule violation"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "Wrong phase"},
    }

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: CreateSessionRequest) -> SessionResponse:
        """
        Create a new game session.

        `mode` is one of `HvsC`, `HvsH`, `CvsC`. Give a `seed` for
        reproducible dice.
        """
        api_service.cleanup()
        return api_service.create_session(body)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses=not_found,
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str):
        """Get the current status of a game session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(
                ErrorCode.SESSION_NOT_FOUND,
                response.error,
                status_code=404,
                details=response.details,
            )
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session and release resources."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Round Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/roll-off",
        response_model=RollOffResponse,
        responses=engine_errors,
        tags=["Rounds"],
        summary="Roll off for the first turn",
    )
    async def roll_off(session_id: str) -> RollOffResponse:
        """Both players roll two dice once. A tie is reported; call again to re-roll."""
        return api_service.roll_off(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/rounds",
        response_model=TurnResponse,
        responses=engine_errors,
        tags=["Rounds"],
        summary="Start the next round",
    )
    async def start_round(session_id: str, body: StartRoundRequest) -> TurnResponse:
        """
        Start the next round.

        Any advantage earned in the previous round is applied. Without a
        `first_player_id` a roll-off decides who moves first.
        """
        return api_service.start_round(session_id, body)

    @app.post(
        "/api/v1/sessions/{session_id}/finish",
        response_model=TournamentResultResponse,
        responses=engine_errors,
        tags=["Rounds"],
        summary="End the match",
    )
    async def finish_tournament(session_id: str) -> TournamentResultResponse:
        return api_service.finish_tournament(session_id)

    # =========================================================================
    # Turn Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/roll",
        response_model=TurnResponse,
        responses=engine_errors,
        tags=["Turns"],
        summary="Roll for the current player",
    )
    async def roll(session_id: str, body: RollRequest) -> TurnResponse:
        """
        Roll one or two dice, or submit die `values` rolled by hand.

        If the roll opens no move the turn ends in the same call.
        """
        return api_service.roll(session_id, body)

    @app.post(
        "/api/v1/sessions/{session_id}/dice-queue",
        response_model=SessionResponse,
        responses=engine_errors,
        tags=["Turns"],
        summary="Queue dice values",
    )
    async def queue_rolls(session_id: str, body: QueueRollsRequest) -> SessionResponse:
        """Queued values are used, in order, by later rolls of the same die count."""
        return api_service.queue_rolls(session_id, body)

    @app.get(
        "/api/v1/sessions/{session_id}/moves",
        response_model=MoveOptions,
        responses=engine_errors,
        tags=["Turns"],
        summary="Legal moves for the pending roll",
    )
    async def legal_moves(session_id: str) -> MoveOptions:
        return api_service.legal_moves(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/moves",
        response_model=TurnResponse,
        responses=engine_errors,
        tags=["Turns"],
        summary="Apply a move",
    )
    async def apply_move(session_id: str, body: MoveRequest) -> TurnResponse:
        """Cover own squares or uncover opponent squares summing to the roll."""
        return api_service.apply_move(session_id, body)

    @app.get(
        "/api/v1/sessions/{session_id}/help",
        response_model=SuggestionResponse,
        responses=engine_errors,
        tags=["Turns"],
        summary="Suggested move for the pending roll",
    )
    async def suggest(session_id: str) -> SuggestionResponse:
        return api_service.suggest(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/automa",
        response_model=TurnResponse,
        responses=engine_errors,
        tags=["Turns"],
        summary="Play computer-controlled turns",
    )
    async def run_automa(session_id: str) -> TurnResponse:
        """Runs until a human-controlled turn begins or the round ends."""
        return api_service.run_automa(session_id)

    # =========================================================================
    # Save / Load / Rewind
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/snapshot",
        response_model=SnapshotResponse,
        responses=engine_errors,
        tags=["Snapshots"],
        summary="Save text of the current state",
    )
    async def get_snapshot(session_id: str) -> SnapshotResponse:
        return api_service.save(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/snapshot",
        response_model=TurnResponse,
        responses=engine_errors,
        tags=["Snapshots"],
        summary="Load save text",
    )
    async def load_snapshot(session_id: str, body: LoadSnapshotRequest) -> TurnResponse:
        """Replace the session's game. The rewind history restarts."""
        return api_service.load(session_id, body)

    @app.get(
        "/api/v1/sessions/{session_id}/history",
        response_model=HistoryResponse,
        responses=not_found,
        tags=["Snapshots"],
        summary="Rewind points of the current round",
    )
    async def history(session_id: str) -> HistoryResponse:
        return api_service.history(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/history/{index}",
        response_model=TurnResponse,
        responses=engine_errors,
        tags=["Snapshots"],
        summary="Rewind to a history entry",
    )
    async def rewind(
        session_id: str,
        index: Annotated[int, Path(description="Entry index from GET /history")],
    ) -> TurnResponse:
        """Entries after `index` are discarded."""
        return api_service.rewind(session_id, index)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="canoga-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Canoga Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
