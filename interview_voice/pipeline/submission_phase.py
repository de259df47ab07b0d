"""Submission phase — one exchange with the Interview Service per turn.

Split into a synchronous prologue and epilogue around the network call so
that all transcript and counter mutation happens inside the controller's
serial event handlers; only :func:`run_exchange` suspends.
"""

from __future__ import annotations

import logging

from interview_voice.interview_client import InterviewServiceClient
from interview_voice.models import Role, TurnMessage
from interview_voice.pipeline.session_context import SessionContext
from interview_voice.schemas import (
    ContinueInterviewRequest,
    ContinueInterviewResponse,
    HistoryEntry,
)
from interview_voice.telemetry import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer()


def begin_submission(ctx: SessionContext, candidate_text: str) -> ContinueInterviewRequest:
    """Append the answer and a pending placeholder; build the service request.

    The request's history is the conversation *before* this answer, without
    any placeholder.
    """
    history = ctx.history()
    ctx.messages.append(TurnMessage(role=Role.CANDIDATE, content=candidate_text))
    ctx.messages.append(TurnMessage.placeholder())
    return ContinueInterviewRequest(
        profile=ctx.profile,
        session_id=ctx.session_id,
        candidate_text=candidate_text,
        history=[HistoryEntry.from_message(m) for m in history],
    )


async def run_exchange(
    client: InterviewServiceClient,
    request: ContinueInterviewRequest,
    submission_id: str,
) -> ContinueInterviewResponse:
    """Perform the request inside a tracing span; errors propagate."""
    with tracer.start_as_current_span(
        "interview.submit",
        attributes={
            "submission.id": submission_id,
            "text.len": len(request.candidate_text),
            "history.len": len(request.history),
        },
    ):
        logger.info("[Submit %s] Sending answer: %.120s", submission_id, request.candidate_text)
        return await client.continue_interview(request)


def apply_response(ctx: SessionContext, response: ContinueInterviewResponse) -> TurnMessage:
    """Resolve the placeholder and advance counters and status."""
    message = TurnMessage(
        role=Role.INTERVIEWER,
        content=response.message,
        feedback=response.feedback,
        score=response.score,
    )
    if not ctx.drop_placeholder():
        logger.warning("[Submit] No pending placeholder to replace — appending reply.")
    ctx.messages.append(message)

    ctx.counters.questions_asked += 1
    ctx.counters.low_score_streak = response.low_score_streak
    if response.score is not None:
        ctx.counters.record_score(response.score)

    if response.interview_status is not None:
        advanced = ctx.status.advance(response.interview_status)
        if advanced is not response.interview_status:
            logger.warning(
                "[Submit] Ignoring backward status %s (current %s).",
                response.interview_status.value,
                ctx.status.value,
            )
        ctx.status = advanced

    return message


def abandon_submission(ctx: SessionContext, candidate_text: str) -> None:
    """Undo :func:`begin_submission` after a failed or cancelled exchange.

    Counters are untouched. The candidate's answer is removed from the
    transcript because the controller hands it back as an editable draft.
    """
    ctx.drop_placeholder()
    last = ctx.messages[-1] if ctx.messages else None
    if last is not None and last.role is Role.CANDIDATE and last.content == candidate_text:
        ctx.messages.pop()
