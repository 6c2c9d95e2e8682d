"""
Tests for API layer.

Tests:
- API service methods
- Session lifecycle via HTTP
- Turn flow via HTTP
- Error mapping (status codes and error_code)
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    CreateSessionRequest,
    ErrorCode,
    GameModeName,
    MoveKind,
    MoveRequest,
    PlayerName,
    RollRequest,
    SessionStatus,
    StartRoundRequest,
)
from ..api.service import APIService, SessionNotFound
from ..config import Settings


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        """Create a fresh API service."""
        return APIService()

    def test_create_session(self, service):
        response = service.create_session(CreateSessionRequest(mode=GameModeName.HUMAN_VS_COMPUTER, seed=1))
        assert response.session_id
        assert response.status == SessionStatus.CREATED
        assert response.mode == GameModeName.HUMAN_VS_COMPUTER
        assert len(response.players) == 2
        assert response.round is None

    def test_get_nonexistent_session(self, service):
        """Getting nonexistent session returns error."""
        response = service.get_session("nonexistent-id")
        assert hasattr(response, "error")
        assert response.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_other_calls_raise_for_missing_session(self, service):
        with pytest.raises(SessionNotFound):
            service.roll("nonexistent-id", RollRequest())

    def test_end_session(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id
        assert service.end_session(session_id)
        assert hasattr(service.get_session(session_id), "error")

    def test_list_sessions(self, service):
        for _ in range(3):
            service.create_session(CreateSessionRequest())
        assert len(service.list_sessions()) == 3

    def test_turn(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id
        start = service.start_round(session_id, StartRoundRequest(board_size=10, first_player_id=PlayerName.HUMAN))
        assert start.state.round.board_size == 10
        assert start.state.round.phase == "awaitingRoll"

        rolled = service.roll(session_id, RollRequest(values=[3, 4]))
        assert rolled.dice.total == 7
        assert [7] in rolled.options.cover
        assert rolled.can_move

        moved = service.apply_move(session_id, MoveRequest(move_type=MoveKind.COVER, squares=[7]))
        human = next(p for p in moved.state.players if p.player_id == PlayerName.HUMAN)
        assert human.board.covered == [7]
        assert human.is_current_turn

    def test_default_board_size_from_settings(self):
        service = APIService(settings=Settings(default_board_size=11))
        session_id = service.create_session(CreateSessionRequest()).session_id
        response = service.start_round(session_id, StartRoundRequest(first_player_id=PlayerName.HUMAN))
        assert response.state.round.board_size == 11


class TestHTTP:
    """Tests through the FastAPI app."""

    @pytest.fixture
    def client(self):
        return TestClient(create_app(service=APIService()))

    @pytest.fixture
    def session_id(self, client):
        response = client.post("/api/v1/sessions", json={"mode": "HvsC", "seed": 4})
        assert response.status_code == 200
        return response.json()["session_id"]

    def start(self, client, session_id, first="HUMAN"):
        response = client.post(
            f"/api/v1/sessions/{session_id}/rounds",
            json={"board_size": 9, "first_player_id": first},
        )
        assert response.status_code == 200
        return response.json()

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_session_lifecycle(self, client, session_id):
        assert client.get(f"/api/v1/sessions/{session_id}").json()["status"] == "created"
        assert session_id in client.get("/api/v1/sessions").json()["sessions"]

        ended = client.delete(f"/api/v1/sessions/{session_id}").json()
        assert ended == {"success": True, "session_id": session_id}

        missing = client.get(f"/api/v1/sessions/{session_id}")
        assert missing.status_code == 404
        assert missing.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_turn_flow(self, client, session_id):
        self.start(client, session_id)
        queued = client.post(f"/api/v1/sessions/{session_id}/dice-queue", json={"rolls": [[3, 4]]})
        assert queued.status_code == 200

        rolled = client.post(f"/api/v1/sessions/{session_id}/roll", json={}).json()
        assert rolled["dice"]["total"] == 7
        assert [7] in rolled["options"]["cover"]

        moves = client.get(f"/api/v1/sessions/{session_id}/moves").json()
        assert moves["cover"] == rolled["options"]["cover"]

        help_ = client.get(f"/api/v1/sessions/{session_id}/help").json()
        assert help_["action"] == "cover"
        assert help_["squares"] == [1, 2, 4]

        moved = client.post(
            f"/api/v1/sessions/{session_id}/moves",
            json={"move_type": "cover", "squares": [1, 2, 4]},
        ).json()
        assert moved["changes"] == ["Human covers [1, 2, 4]"]

        history = client.get(f"/api/v1/sessions/{session_id}/history").json()
        assert len(history["entries"]) == 2

    def test_automa(self, client, session_id):
        self.start(client, session_id, first="COMPUTER")
        response = client.post(f"/api/v1/sessions/{session_id}/automa").json()
        assert response["automa_actions"]
        state = response["state"]
        assert state["round"]["current_player_id"] == "HUMAN" or state["round"]["result"] is not None

    def test_snapshot_round_trip(self, client, session_id):
        self.start(client, session_id)
        client.post(f"/api/v1/sessions/{session_id}/roll", json={"values": [6, 6]})
        client.post(f"/api/v1/sessions/{session_id}/moves", json={"move_type": "cover", "squares": [3, 9]})
        text = client.get(f"/api/v1/sessions/{session_id}/snapshot").json()["text"]
        assert "Squares: 1 2 0 4 5 6 7 8 0" in text

        other = client.post("/api/v1/sessions", json={"mode": "HvsH"}).json()["session_id"]
        loaded = client.post(f"/api/v1/sessions/{other}/snapshot", json={"text": text})
        assert loaded.status_code == 200
        human = next(p for p in loaded.json()["state"]["players"] if p["player_id"] == "HUMAN")
        assert human["board"]["covered"] == [3, 9]

    def test_rewind(self, client, session_id):
        self.start(client, session_id)
        client.post(f"/api/v1/sessions/{session_id}/roll", json={"values": [3, 4]})
        client.post(f"/api/v1/sessions/{session_id}/moves", json={"move_type": "cover", "squares": [7]})
        response = client.post(f"/api/v1/sessions/{session_id}/history/0")
        assert response.status_code == 200
        human = next(p for p in response.json()["state"]["players"] if p["player_id"] == "HUMAN")
        assert human["board"]["covered"] == []


class TestErrorMapping:
    """Engine errors become ErrorResponse bodies."""

    @pytest.fixture
    def client(self):
        return TestClient(create_app(service=APIService()))

    @pytest.fixture
    def session_id(self, client):
        session_id = client.post("/api/v1/sessions", json={}).json()["session_id"]
        client.post(
            f"/api/v1/sessions/{session_id}/rounds",
            json={"board_size": 9, "first_player_id": "HUMAN"},
        )
        return session_id

    def test_wrong_phase_is_409(self, client, session_id):
        response = client.post(
            f"/api/v1/sessions/{session_id}/moves",
            json={"move_type": "cover", "squares": [7]},
        )
        assert response.status_code == 409
        assert response.json()["error_code"] == "WRONG_PHASE"

    def test_one_die_not_allowed(self, client, session_id):
        response = client.post(f"/api/v1/sessions/{session_id}/roll", json={"dice_count": 1})
        assert response.status_code == 400
        assert response.json()["error_code"] == "ONE_DIE_NOT_ALLOWED"

    def test_invalid_move(self, client, session_id):
        client.post(f"/api/v1/sessions/{session_id}/roll", json={"values": [3, 4]})
        response = client.post(
            f"/api/v1/sessions/{session_id}/moves",
            json={"move_type": "uncover", "squares": [7]},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_MOVE"

    def test_bad_board_size(self, client):
        session_id = client.post("/api/v1/sessions", json={}).json()["session_id"]
        response = client.post(f"/api/v1/sessions/{session_id}/rounds", json={"board_size": 12})
        assert response.status_code == 400
        assert response.json()["error_code"] == "CONFIG_ERROR"

    def test_corrupt_snapshot(self, client, session_id):
        response = client.post(f"/api/v1/sessions/{session_id}/snapshot", json={"text": "garbage"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "CORRUPT_SNAPSHOT"

    def test_unknown_session(self, client):
        response = client.post("/api/v1/sessions/nope/roll", json={})
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_validation_error(self, client, session_id):
        response = client.post(
            f"/api/v1/sessions/{session_id}/moves",
            json={"move_type": "cover", "squares": []},
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
