"""Production smoke tests — proves every ship-critical path works.

Exercises the real FastAPI app: health check, the interview socket handshake,
fatal profile errors, a typed turn end-to-end and telemetry init.

Run:
    uv run pytest tests/test_production_smoke.py -v
"""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from starlette.websockets import WebSocketDisconnect

from fakes import FakeInterviewService, reply
from interview_voice import main
from interview_voice.config import Settings
from interview_voice.telemetry import get_tracer, init_telemetry

OPENER = "Tell me about yourself."


@pytest.fixture
def resume_file(tmp_path):
    path = tmp_path / "resume.json"
    path.write_text(json.dumps({
        "name": "Ada",
        "skills": {"skills": ["Python"]},
        "experience": [],
        "projects": [],
    }))
    return path


@pytest.fixture
def app_settings(monkeypatch, resume_file):
    settings = Settings(profile_path=resume_file, silence_timeout=0.05)
    monkeypatch.setattr(main.app.state, "settings", settings, raising=False)
    return settings


def _receive_until(ws, predicate, limit: int = 30) -> dict:
    for _ in range(limit):
        msg = ws.receive_json()
        if predicate(msg):
            return msg
    raise AssertionError("expected message never arrived")


# ---------------------------------------------------------------------------
# 1. Health endpoint
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    """GET /health returns {"status": "ok"} via ASGI transport."""

    @pytest.mark.asyncio
    async def test_health_returns_ok(self):
        """ASGITransport skips lifespan, so no settings or tracer are needed."""
        transport = ASGITransport(app=main.app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            resp = await client.get("/health")
            assert resp.status_code == 200
            assert resp.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# 2. Handshake and fatal errors
# ---------------------------------------------------------------------------


class TestSessionHandshake:
    def test_first_message_must_be_session_init(self, app_settings):
        client = TestClient(main.app)
        with client.websocket_connect("/ws/interview/abc") as ws:
            ws.send_json({"type": "start_listening"})
            err = ws.receive_json()
            assert err["type"] == "error"
            assert err["code"] == "E_BAD_REQUEST"
            assert err["recoverable"] is False
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

    def test_missing_profile_is_fatal(self, monkeypatch, tmp_path):
        settings = Settings(profile_path=tmp_path / "absent.json")
        monkeypatch.setattr(main.app.state, "settings", settings, raising=False)
        client = TestClient(main.app)
        with client.websocket_connect("/ws/interview/abc") as ws:
            ws.send_json({"type": "session_init"})
            err = ws.receive_json()
            assert err["code"] == "E_PROFILE_MISSING"
            assert err["recoverable"] is False
            assert err["session_id"] == "abc"
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

    def test_session_without_speech_keys_announces_capabilities(self, app_settings):
        client = TestClient(main.app)
        with client.websocket_connect("/ws/interview/abc") as ws:
            ws.send_json({"type": "session_init", "initial_message": OPENER})
            codes = {ws.receive_json()["code"], ws.receive_json()["code"]}
            assert codes == {"E_RECOGNIZER_UNAVAILABLE", "E_SYNTHESIZER_UNAVAILABLE"}

            convo = _receive_until(ws, lambda m: m["type"] == "conversation")
            assert convo["messages"][0]["content"] == OPENER


# ---------------------------------------------------------------------------
# 3. Typed turn end-to-end
# ---------------------------------------------------------------------------


class TestTypedTurn:
    def test_text_input_round_trip(self, monkeypatch, app_settings):
        service = FakeInterviewService(reply("What drew you to Python?", score=8))
        monkeypatch.setattr(main, "InterviewServiceClient", lambda *a, **k: service)

        client = TestClient(main.app)
        with client.websocket_connect("/ws/interview/abc") as ws:
            ws.send_json({"type": "session_init", "initialMessage": OPENER})
            _receive_until(ws, lambda m: m["type"] == "session")

            ws.send_json({"type": "text_input", "text": "I enjoy building services."})
            convo = _receive_until(
                ws,
                lambda m: m["type"] == "conversation"
                and m["messages"][-1]["content"] == "What drew you to Python?",
            )
            session = _receive_until(ws, lambda m: m["type"] == "session")

        assert [m["role"] for m in convo["messages"]] == [
            "interviewer",
            "candidate",
            "interviewer",
        ]
        assert convo["messages"][-1]["score"] == 8
        assert session["questions_asked"] == 2
        assert session["running_score"] == 8.0
        assert service.requests[0].session_id == "abc"

    def test_unknown_command_is_rejected(self, app_settings):
        client = TestClient(main.app)
        with client.websocket_connect("/ws/interview/abc") as ws:
            ws.send_json({"type": "session_init"})
            _receive_until(ws, lambda m: m["type"] == "session")
            ws.send_json({"type": "dance"})
            err = _receive_until(ws, lambda m: m["type"] == "error")
            assert err["code"] == "E_BAD_REQUEST"
            assert err["recoverable"] is True


# ---------------------------------------------------------------------------
# 4. OTel telemetry init
# ---------------------------------------------------------------------------


class TestTelemetryInit:
    """init_telemetry() + get_tracer() returns valid tracer."""

    def test_get_tracer_returns_tracer(self):
        tracer = get_tracer()
        assert tracer is not None
        assert hasattr(tracer, "start_as_current_span")

    def test_init_telemetry_is_idempotent(self):
        init_telemetry("none")
        init_telemetry("none")
        from interview_voice import telemetry

        assert telemetry._initialized is True
