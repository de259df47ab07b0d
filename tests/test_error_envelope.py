"""Tests for the TurnError envelope and send_error utility.

Run:
    uv run pytest tests/test_error_envelope.py -v
"""

from unittest.mock import AsyncMock

import pytest

from interview_voice.errors import (
    ErrorCode,
    InterviewServiceError,
    ProfileLoadError,
    TurnError,
    send_error,
)


class TestTurnErrorSerialization:
    """TurnError.to_dict() produces the expected JSON shape."""

    def test_basic_serialization(self):
        err = TurnError(
            code=ErrorCode.E_RECOGNITION_FAILED,
            message="Speech recognition error. Please try again.",
            recoverable=True,
            session_id="interview-42",
        )
        d = err.to_dict()
        assert d["type"] == "error"
        assert d["code"] == "E_RECOGNITION_FAILED"
        assert d["message"] == "Speech recognition error. Please try again."
        assert d["recoverable"] is True
        assert d["session_id"] == "interview-42"
        assert "details" not in d

    def test_serialization_with_details(self):
        err = TurnError(
            code=ErrorCode.E_RECOGNITION_FAILED,
            message="Recognizer failed",
            details={"error": "network"},
        )
        assert err.to_dict()["details"] == {"error": "network"}

    def test_profile_errors_are_not_recoverable(self):
        exc = ProfileLoadError(ErrorCode.E_PROFILE_MISSING, "Resume data not found.")
        d = TurnError(code=exc.code, message=exc.message, recoverable=False).to_dict()
        assert d["code"] == "E_PROFILE_MISSING"
        assert d["recoverable"] is False

    def test_plain_string_code_passes_through(self):
        assert TurnError(code="E_CUSTOM", message="x").to_dict()["code"] == "E_CUSTOM"

    def test_all_error_codes_are_strings(self):
        for code in ErrorCode:
            assert isinstance(code.value, str)
            assert code.value.startswith("E_")


class TestExceptions:
    def test_interview_service_error_keeps_status(self):
        exc = InterviewServiceError("Service down", status_code=503)
        assert exc.message == "Service down"
        assert exc.status_code == 503
        assert str(exc) == "Service down"


class TestSendError:
    """send_error() calls sink.send_json() with the correct payload."""

    @pytest.mark.asyncio
    async def test_send_error_calls_send_json(self):
        ws = AsyncMock()
        err = TurnError(
            code=ErrorCode.E_SUBMISSION_FAILED,
            message="Failed to continue interview",
            session_id="interview-1",
        )
        await send_error(ws, err)
        ws.send_json.assert_called_once()
        payload = ws.send_json.call_args[0][0]
        assert payload["type"] == "error"
        assert payload["code"] == "E_SUBMISSION_FAILED"
        assert payload["message"] == "Failed to continue interview"

    @pytest.mark.asyncio
    async def test_send_error_swallows_send_failure(self):
        ws = AsyncMock()
        ws.send_json.side_effect = RuntimeError("WebSocket closed")
        err = TurnError(code=ErrorCode.E_BAD_REQUEST, message="bad")
        # Should NOT raise
        await send_error(ws, err)
