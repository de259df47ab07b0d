"""SessionContext — per-session mutable state container.

Holds everything the Turn Controller owns for one interview: the transcript,
the pending answer, voice flags, counters and status. Handlers and pipeline
phases receive it explicitly instead of capturing outer variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from interview_voice import constants
from interview_voice.models import (
    InterviewStatus,
    PendingResponse,
    Role,
    SessionBootstrap,
    SessionCounters,
    TurnMessage,
    VoiceState,
)
from interview_voice.schemas import ResumeProfile


@dataclass
class SessionContext:
    """All per-session mutable state for a single interview connection."""

    session_id: str
    profile: ResumeProfile
    status: InterviewStatus = InterviewStatus.IN_PROGRESS
    messages: list[TurnMessage] = field(default_factory=list)
    pending: PendingResponse = field(default_factory=PendingResponse)
    voice: VoiceState = field(default_factory=VoiceState)
    counters: SessionCounters = field(default_factory=SessionCounters)

    @classmethod
    def seeded(
        cls,
        session_id: str,
        profile: ResumeProfile,
        bootstrap: SessionBootstrap | None = None,
    ) -> "SessionContext":
        """Create a context with the caller's initial message and status applied."""
        bootstrap = bootstrap or SessionBootstrap()
        ctx = cls(session_id=session_id, profile=profile, status=bootstrap.interview_status)
        if bootstrap.initial_message:
            ctx.messages.append(
                TurnMessage(role=Role.INTERVIEWER, content=bootstrap.initial_message)
            )
            ctx.counters.questions_asked = 1
        return ctx

    @property
    def completed(self) -> bool:
        return self.status is InterviewStatus.COMPLETED

    @property
    def in_progress(self) -> bool:
        """Turns are only taken while the interview is running."""
        return self.status is InterviewStatus.IN_PROGRESS

    def history(self) -> list[TurnMessage]:
        """Conversation so far, without any pending placeholder."""
        return [m for m in self.messages if not m.pending]

    def drop_placeholder(self) -> bool:
        if self.messages and self.messages[-1].pending:
            self.messages.pop()
            return True
        return False

    def session_payload(self) -> dict[str, Any]:
        streak = self.counters.low_score_streak
        return {
            "type": "session",
            "questions_asked": self.counters.questions_asked,
            "max_questions": constants.MAX_QUESTIONS,
            "low_score_streak": streak,
            "low_score_warning": streak >= constants.LOW_SCORE_WARNING_STREAK,
            "ended_early": self.completed and streak >= constants.LOW_SCORE_EARLY_END_STREAK,
            "running_score": self.counters.running_score,
            "interview_status": self.status.value,
        }

    def conversation_payload(self) -> dict[str, Any]:
        return {
            "type": "conversation",
            "messages": [m.to_dict() for m in self.messages],
        }

    def transcript_payload(self) -> dict[str, Any]:
        return {
            "type": "transcript",
            "finalized": self.pending.finalized,
            "interim": self.pending.interim,
        }
