"""Resume profile loading — read once at session start, never written.

A missing or unreadable profile is fatal to the session: the caller reports
it to the client and closes the connection instead of retrying.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from interview_voice.errors import ErrorCode, ProfileLoadError
from interview_voice.schemas import ResumeProfile

logger = logging.getLogger(__name__)


def load_profile(path: Path) -> ResumeProfile:
    """Parse the resume JSON at *path*.

    Raises
    ------
    ProfileLoadError
        ``E_PROFILE_MISSING`` when the file does not exist,
        ``E_PROFILE_MALFORMED`` when it is not valid JSON or fails validation.
    """
    if not path.exists():
        logger.error("[Profile] No resume data at %s", path)
        raise ProfileLoadError(
            ErrorCode.E_PROFILE_MISSING,
            "Resume data not found. Please return to the home page.",
        )

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        profile = ResumeProfile.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.error("[Profile] Failed to load %s: %s", path, exc)
        raise ProfileLoadError(
            ErrorCode.E_PROFILE_MALFORMED,
            "Error loading resume data. Please return to the home page.",
        ) from exc

    logger.info(
        "[Profile] Loaded resume for %s (%d experience, %d projects)",
        profile.name or "<unnamed>",
        len(profile.experience),
        len(profile.projects),
    )
    return profile
