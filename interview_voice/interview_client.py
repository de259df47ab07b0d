"""Interview Service client — one ``POST /continue-interview`` per turn."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from interview_voice import constants
from interview_voice.errors import InterviewServiceError
from interview_voice.schemas import (
    ContinueInterviewRequest,
    ContinueInterviewResponse,
)

logger = logging.getLogger(__name__)

_DEFAULT_ERROR = "Failed to continue interview"


class InterviewServiceClient:
    """Scores a candidate answer and fetches the next interviewer prompt.

    Parameters
    ----------
    base_url : str
        Root URL of the Interview Service (from INTERVIEW_SERVICE_URL).
    timeout : float
        Hard deadline in seconds for the whole exchange.
    """

    def __init__(
        self,
        base_url: str = constants.INTERVIEW_SERVICE_URL,
        *,
        timeout: float = constants.INTERVIEW_SERVICE_TIMEOUT,
    ) -> None:
        self._url = base_url.rstrip("/") + constants.CONTINUE_INTERVIEW_PATH
        self._timeout = timeout

    async def continue_interview(
        self, request: ContinueInterviewRequest
    ) -> ContinueInterviewResponse:
        """Send one turn and return the validated response.

        Network errors, timeouts, non-2xx statuses and malformed payloads are
        all raised as :class:`InterviewServiceError`. No retry is attempted:
        the service advances its own interview state on every accepted call.
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=request.to_wire())
        except httpx.TimeoutException as exc:
            logger.warning("[InterviewService] Timed out after %.1fs: %s", self._timeout, exc)
            raise InterviewServiceError("The interview service took too long to respond.") from exc
        except httpx.HTTPError as exc:
            logger.warning("[InterviewService] Network error: %s", exc)
            raise InterviewServiceError(
                "Failed to get interview response. Please try again."
            ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.error(
                "[InterviewService] Non-JSON body (status %d)", response.status_code
            )
            raise InterviewServiceError(
                _DEFAULT_ERROR, status_code=response.status_code
            ) from exc

        if not response.is_success:
            error = data.get("error") if isinstance(data, dict) else None
            message = error if isinstance(error, str) and error else _DEFAULT_ERROR
            logger.error(
                "[InterviewService] Status %d: %s", response.status_code, message
            )
            raise InterviewServiceError(message, status_code=response.status_code)

        try:
            parsed = ContinueInterviewResponse.model_validate(data)
        except ValidationError as exc:
            logger.error("[InterviewService] Malformed response: %s", exc)
            raise InterviewServiceError(
                "The interview service returned an unexpected response.",
                status_code=response.status_code,
            ) from exc

        logger.info(
            "[InterviewService] Reply received (score=%s, status=%s, streak=%d)",
            parsed.score,
            parsed.interview_status.value if parsed.interview_status else "-",
            parsed.low_score_streak,
        )
        return parsed
