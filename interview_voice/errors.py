"""TurnError envelope — structured error reporting over WebSocket.

Every error sent to the interview client follows a consistent JSON shape so
the UI can render notices with actionable information and the backend logs
remain machine-parseable.

Error codes
-----------
E_RECOGNIZER_UNAVAILABLE   No speech-recognition capability for this session.
E_SYNTHESIZER_UNAVAILABLE  No speech-synthesis capability for this session.
E_RECOGNITION_FAILED       Recognizer reported a runtime error.
E_SUBMISSION_FAILED        Interview Service exchange failed.
E_PROFILE_MISSING          Resume profile not found at session start.
E_PROFILE_MALFORMED        Resume profile could not be parsed.
E_BAD_REQUEST              Client sent a message the bridge cannot handle.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ErrorCode(str, enum.Enum):
    E_RECOGNIZER_UNAVAILABLE = "E_RECOGNIZER_UNAVAILABLE"
    E_SYNTHESIZER_UNAVAILABLE = "E_SYNTHESIZER_UNAVAILABLE"
    E_RECOGNITION_FAILED = "E_RECOGNITION_FAILED"
    E_SUBMISSION_FAILED = "E_SUBMISSION_FAILED"
    E_PROFILE_MISSING = "E_PROFILE_MISSING"
    E_PROFILE_MALFORMED = "E_PROFILE_MALFORMED"
    E_BAD_REQUEST = "E_BAD_REQUEST"


class InterviewServiceError(Exception):
    """The Interview Service exchange failed (network, status or payload)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProfileLoadError(Exception):
    """The persisted resume profile is missing or malformed."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class JSONSink(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass
class TurnError:
    code: str
    message: str
    recoverable: bool = True
    session_id: str = ""
    details: dict[str, Any] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        code = self.code.value if isinstance(self.code, ErrorCode) else self.code
        d: dict[str, Any] = {
            "type": "error",
            "code": code,
            "message": self.message,
            "recoverable": self.recoverable,
            "session_id": self.session_id,
        }
        if self.details:
            d["details"] = self.details
        return d


async def send_error(sink: JSONSink, error: TurnError) -> None:
    """Serialize *error* and send it as a JSON message on *sink*.

    Silently catches send failures (the socket may already be closed).
    """
    try:
        await sink.send_json(error.to_dict())
        logger.warning(
            "[TurnError] Sent %s to client: %s (session=%s)",
            error.code,
            error.message,
            error.session_id,
        )
    except Exception as exc:
        logger.debug("[TurnError] Failed to send error to client: %s", exc)
