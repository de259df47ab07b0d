"""Runtime configuration for the interview voice engine.

Values come from the process environment after ``.env`` is loaded. A native
``config.json`` in the platform config directory (written by the desktop
shell) can supply API keys that are not already set:

  Windows  : %APPDATA%\\com.interview-voice.engine\\config.json
  macOS    : ~/Library/Application Support/com.interview-voice.engine/config.json
  Linux    : ~/.config/com.interview-voice.engine/config.json
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from interview_voice import constants

logger = logging.getLogger(__name__)


def _config_dir() -> Path:
    # Plain `str` so type checkers don't narrow to a platform literal.
    platform: str = sys.platform
    if platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / constants.APP_ID
    if platform == "darwin":
        return Path.home() / "Library" / "Application Support" / constants.APP_ID
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    base_dir = Path(xdg) if xdg else Path.home() / ".config"
    return base_dir / constants.APP_ID


def _data_dir() -> Path:
    platform: str = sys.platform
    if platform in ("win32", "darwin"):
        return _config_dir()
    xdg = os.environ.get("XDG_DATA_HOME", "")
    base_dir = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base_dir / constants.APP_ID


def load_native_config(config_path: Path | None = None) -> list[str]:
    """Copy allowed keys from the native ``config.json`` into ``os.environ``.

    Only sets keys that are not already present so ``.env`` values still win
    during local development. Returns the names of the keys that were loaded.
    """
    path = config_path or _config_dir() / "config.json"
    if not path.exists():
        logger.debug("[Config] No native config at %s — using environment only.", path)
        return []

    try:
        keys = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("[Config] Failed to parse native config %s: %s", path, exc)
        return []

    loaded = []
    for k, v in keys.items():
        if k in constants.ALLOWED_ENV_KEYS and isinstance(v, str) and v:
            os.environ.setdefault(k, v)
            loaded.append(k)
    if loaded:
        logger.info("[Config] Loaded from native config: %s", loaded)
    return loaded


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("[Config] %s=%r is not a number — using %s.", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    deepgram_api_key: str = ""
    cartesia_api_key: str = ""
    tts_voice: str = ""
    interview_service_url: str = constants.INTERVIEW_SERVICE_URL
    interview_service_timeout: float = constants.INTERVIEW_SERVICE_TIMEOUT
    silence_timeout: float = constants.SILENCE_TIMEOUT_MS / 1000
    profile_path: Path = Path(constants.PROFILE_FILENAME)
    otel_exporter: str = "console"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build :class:`Settings` from ``.env``, native config and the environment."""
    load_dotenv()
    load_native_config()

    profile_raw = os.environ.get("INTERVIEW_PROFILE_PATH", "")
    profile_path = Path(profile_raw) if profile_raw else _data_dir() / constants.PROFILE_FILENAME

    return Settings(
        deepgram_api_key=os.environ.get("DEEPGRAM_API_KEY", ""),
        cartesia_api_key=os.environ.get("CARTESIA_API_KEY", ""),
        tts_voice=os.environ.get("TTS_VOICE", ""),
        interview_service_url=os.environ.get(
            "INTERVIEW_SERVICE_URL", constants.INTERVIEW_SERVICE_URL
        ).rstrip("/"),
        interview_service_timeout=_env_float(
            "INTERVIEW_SERVICE_TIMEOUT", constants.INTERVIEW_SERVICE_TIMEOUT
        ),
        silence_timeout=_env_float("SILENCE_TIMEOUT_MS", constants.SILENCE_TIMEOUT_MS) / 1000,
        profile_path=profile_path,
        otel_exporter=os.environ.get("OTEL_EXPORTER", "console"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
