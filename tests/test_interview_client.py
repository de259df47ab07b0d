"""Tests for InterviewServiceClient — request shape and failure mapping.

Run:
    uv run pytest tests/test_interview_client.py -v
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from interview_voice.errors import InterviewServiceError
from interview_voice.interview_client import InterviewServiceClient
from interview_voice.models import InterviewStatus, Role
from interview_voice.schemas import ContinueInterviewRequest, HistoryEntry


def _request(profile) -> ContinueInterviewRequest:
    return ContinueInterviewRequest(
        profile=profile,
        session_id="interview-7",
        candidate_text="I built a parser.",
        history=[HistoryEntry(role=Role.INTERVIEWER, content="Tell me about yourself.")],
    )


def _mock_client(*, status=200, body=None, json_error=None, post_error=None):
    mock_response = MagicMock()
    mock_response.status_code = status
    mock_response.is_success = 200 <= status < 300
    if json_error is not None:
        mock_response.json.side_effect = json_error
    else:
        mock_response.json.return_value = body

    mock_client = AsyncMock()
    if post_error is not None:
        mock_client.post.side_effect = post_error
    else:
        mock_client.post.return_value = mock_response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestRequest:
    @pytest.mark.asyncio
    async def test_posts_camel_case_body_to_continue_endpoint(self, profile):
        mock_client = _mock_client(body={"message": "Next?", "lowScoreStreak": 0})
        client = InterviewServiceClient("http://svc.local/", timeout=5.0)

        with patch("httpx.AsyncClient", return_value=mock_client) as factory:
            await client.continue_interview(_request(profile))

        factory.assert_called_once_with(timeout=5.0)
        url = mock_client.post.call_args[0][0]
        body = mock_client.post.call_args[1]["json"]
        assert url == "http://svc.local/continue-interview"
        assert body["interviewId"] == "interview-7"
        assert body["userResponse"] == "I built a parser."
        assert body["resumeData"]["name"] == "Ada"
        assert body["conversationHistory"] == [
            {"type": "interviewer", "content": "Tell me about yourself."}
        ]


class TestResponse:
    @pytest.mark.asyncio
    async def test_parses_success(self, profile):
        mock_client = _mock_client(body={
            "message": "Why asyncio?",
            "feedback": "Solid example",
            "score": 8,
            "interviewStatus": "in_progress",
            "lowScoreStreak": 1,
        })
        with patch("httpx.AsyncClient", return_value=mock_client):
            resp = await InterviewServiceClient().continue_interview(_request(profile))

        assert resp.message == "Why asyncio?"
        assert resp.feedback == "Solid example"
        assert resp.score == 8
        assert resp.interview_status is InterviewStatus.IN_PROGRESS
        assert resp.low_score_streak == 1

    @pytest.mark.asyncio
    async def test_null_streak_becomes_zero(self, profile):
        mock_client = _mock_client(body={"message": "ok", "lowScoreStreak": None})
        with patch("httpx.AsyncClient", return_value=mock_client):
            resp = await InterviewServiceClient().continue_interview(_request(profile))
        assert resp.low_score_streak == 0
        assert resp.score is None


class TestFailures:
    @pytest.mark.asyncio
    async def test_error_status_uses_service_message(self, profile):
        mock_client = _mock_client(status=500, body={"error": "Model overloaded"})
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(InterviewServiceError) as info:
                await InterviewServiceClient().continue_interview(_request(profile))
        assert info.value.message == "Model overloaded"
        assert info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_error_status_without_message_uses_default(self, profile):
        mock_client = _mock_client(status=502, body={"detail": "bad gateway"})
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(InterviewServiceError) as info:
                await InterviewServiceClient().continue_interview(_request(profile))
        assert info.value.message == "Failed to continue interview"

    @pytest.mark.asyncio
    async def test_non_json_body(self, profile):
        mock_client = _mock_client(status=200, json_error=ValueError("not json"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(InterviewServiceError):
                await InterviewServiceClient().continue_interview(_request(profile))

    @pytest.mark.asyncio
    async def test_malformed_payload(self, profile):
        mock_client = _mock_client(body={"score": 4})
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(InterviewServiceError) as info:
                await InterviewServiceClient().continue_interview(_request(profile))
        assert "unexpected response" in info.value.message

    @pytest.mark.asyncio
    async def test_out_of_range_score_is_malformed(self, profile):
        mock_client = _mock_client(body={"message": "x", "score": 42})
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(InterviewServiceError):
                await InterviewServiceClient().continue_interview(_request(profile))

    @pytest.mark.asyncio
    async def test_timeout(self, profile):
        mock_client = _mock_client(post_error=httpx.ReadTimeout("slow"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(InterviewServiceError) as info:
                await InterviewServiceClient().continue_interview(_request(profile))
        assert "too long" in info.value.message

    @pytest.mark.asyncio
    async def test_network_error(self, profile):
        mock_client = _mock_client(post_error=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(InterviewServiceError) as info:
                await InterviewServiceClient().continue_interview(_request(profile))
        assert info.value.message == "Failed to get interview response. Please try again."
        assert mock_client.post.await_count == 1
