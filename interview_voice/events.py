"""Event records delivered to the Turn Controller's queue.

Recognizer output, timer expiry, synthesis completion, submission completion
and the client's manual commands all travel through one channel and are
handled strictly in arrival order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from interview_voice.schemas import ContinueInterviewResponse


# ---------------------------------------------------------------------------
# Recognizer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecognitionFragment:
    transcript: str
    is_final: bool = False


@dataclass(frozen=True)
class RecognitionError:
    error: str


@dataclass(frozen=True)
class RecognitionEnded:
    pass


# ---------------------------------------------------------------------------
# Internal completions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SilenceElapsed:
    generation: int
    snapshot: str


@dataclass(frozen=True)
class SpeechFinished:
    generation: int


@dataclass(frozen=True)
class SubmissionCompleted:
    submission_id: str
    candidate_text: str
    response: Optional[ContinueInterviewResponse] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Manual commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StartListening:
    pass


@dataclass(frozen=True)
class StopListening:
    pass


@dataclass(frozen=True)
class SubmitText:
    text: str


@dataclass(frozen=True)
class RetrySubmission:
    pass


@dataclass(frozen=True)
class ToggleAudio:
    pass


@dataclass(frozen=True)
class EndInterview:
    pass


RecognizerEvent = Union[RecognitionFragment, RecognitionError, RecognitionEnded]

TurnEvent = Union[
    RecognitionFragment,
    RecognitionError,
    RecognitionEnded,
    SilenceElapsed,
    SpeechFinished,
    SubmissionCompleted,
    StartListening,
    StopListening,
    SubmitText,
    RetrySubmission,
    ToggleAudio,
    EndInterview,
]
