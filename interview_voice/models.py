"""Conversation and session records owned by the Turn Controller."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional


class Role(str, enum.Enum):
    INTERVIEWER = "interviewer"
    CANDIDATE = "candidate"


class InterviewStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def advance(self, proposed: "InterviewStatus") -> "InterviewStatus":
        """Return *proposed* if it moves forward, otherwise stay put."""
        return proposed if proposed.rank > self.rank else self


_STATUS_ORDER = [
    InterviewStatus.NOT_STARTED,
    InterviewStatus.IN_PROGRESS,
    InterviewStatus.COMPLETED,
]


class TurnState(str, enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"
    SUBMITTING = "submitting"
    SPEAKING = "speaking"
    COMPLETED = "completed"


@dataclass(frozen=True)
class TurnMessage:
    """One entry of the conversation transcript.

    A ``pending`` interviewer message is a placeholder for an in-flight
    response; it is always the last entry and gets replaced, not appended to.
    """

    role: Role
    content: str
    feedback: Optional[str] = None
    score: Optional[float] = None
    pending: bool = False

    @classmethod
    def placeholder(cls) -> "TurnMessage":
        return cls(role=Role.INTERVIEWER, content="", pending=True)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
            "pending": self.pending,
        }
        if self.feedback is not None:
            d["feedback"] = self.feedback
        if self.score is not None:
            d["score"] = self.score
        return d


@dataclass
class PendingResponse:
    """The candidate's not-yet-submitted answer."""

    finalized: str = ""
    interim: str = ""

    def clear(self) -> None:
        self.finalized = ""
        self.interim = ""


@dataclass
class VoiceState:
    listening: bool = False
    speaking: bool = False
    audio_enabled: bool = True


@dataclass
class SessionCounters:
    questions_asked: int = 0
    low_score_streak: int = 0
    running_score: Optional[float] = None

    def record_score(self, score: float) -> float:
        """Fold *score* into the running average and return the new value."""
        if self.running_score is None:
            self.running_score = float(score)
        else:
            self.running_score = (self.running_score + score) / 2
        return self.running_score


@dataclass
class SessionBootstrap:
    """Caller-supplied seed applied before any turn happens."""

    initial_message: Optional[str] = None
    interview_status: InterviewStatus = InterviewStatus.IN_PROGRESS

