"""Wire schemas for the Interview Service and the persisted resume profile.

The service speaks camelCase JSON; the models accept either the wire alias or
the Python field name and always serialise by alias.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from interview_voice.models import InterviewStatus, Role, SessionBootstrap, TurnMessage


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Resume profile
# ---------------------------------------------------------------------------


class SkillSet(_WireModel):
    skills: list[str] = Field(default_factory=list)


class ExperienceEntry(_WireModel):
    title: str
    company: str = ""
    duration: str = ""
    achievements: list[str] = Field(default_factory=list)


class ProjectEntry(_WireModel):
    title: str
    description: str = ""
    link: str = ""


class ResumeProfile(_WireModel):
    name: Optional[str] = None
    skills: SkillSet = Field(default_factory=SkillSet)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Interview Service exchange
# ---------------------------------------------------------------------------


class HistoryEntry(_WireModel):
    role: Role = Field(alias="type")
    content: str
    feedback: Optional[str] = None
    score: Optional[float] = None

    @classmethod
    def from_message(cls, message: TurnMessage) -> "HistoryEntry":
        return cls(
            role=message.role,
            content=message.content,
            feedback=message.feedback,
            score=message.score,
        )


class ContinueInterviewRequest(_WireModel):
    profile: ResumeProfile = Field(alias="resumeData")
    session_id: str = Field(alias="interviewId")
    candidate_text: str = Field(alias="userResponse")
    history: list[HistoryEntry] = Field(default_factory=list, alias="conversationHistory")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ContinueInterviewResponse(_WireModel):
    message: str
    feedback: Optional[str] = None
    score: Optional[float] = Field(default=None, ge=0, le=10)
    interview_status: Optional[InterviewStatus] = Field(default=None, alias="interviewStatus")
    low_score_streak: int = Field(default=0, ge=0, alias="lowScoreStreak")

    @field_validator("low_score_streak", mode="before")
    @classmethod
    def _null_streak(cls, v):
        return 0 if v is None else v

# ---------------------------------------------------------------------------
# Client handshake
# ---------------------------------------------------------------------------


class SessionInit(_WireModel):
    """First message on the interview socket; seeds the conversation."""

    initial_message: Optional[str] = Field(default=None, alias="initialMessage")
    interview_status: InterviewStatus = Field(
        default=InterviewStatus.IN_PROGRESS, alias="interviewStatus"
    )

    def to_bootstrap(self) -> SessionBootstrap:
        message = (self.initial_message or "").strip() or None
        return SessionBootstrap(initial_message=message, interview_status=self.interview_status)
