"""Centralized constants for the interview voice engine.

All magic numbers and timeout values should be defined here for easy maintenance.
"""

# Audio capture
AUDIO_SAMPLE_RATE: int = 16_000  # PCM-16 LE mono from the browser
RECOGNIZER_LANGUAGE: str = "en-US"

# Endpointing
SILENCE_TIMEOUT_MS: int = 2000  # Quiet period before a turn auto-submits

# Speech output
SPEECH_RATE: float = 1.0
SPEECH_PITCH: float = 1.0
SPEECH_VOLUME: float = 1.0
TTS_TAIL_DELAY: float = 0.5  # Let client playback drain before re-enabling the mic

# Interview Service
INTERVIEW_SERVICE_URL: str = "http://localhost:5000"
INTERVIEW_SERVICE_TIMEOUT: float = 30.0  # Hard deadline per exchange (seconds)
CONTINUE_INTERVIEW_PATH: str = "/continue-interview"

# Session display
MAX_QUESTIONS: int = 25
LOW_SCORE_WARNING_STREAK: int = 2
LOW_SCORE_EARLY_END_STREAK: int = 3  # Service wraps up early at this streak

CLOSING_MESSAGE: str = (
    "Thank you for your time today. It's been great learning more about your "
    "experience. We'll wrap up here - I appreciate you taking the time to speak "
    "with me. Best of luck with everything!"
)
CLOSING_FEEDBACK: str = "Interview completed"

# Environment keys
ALLOWED_ENV_KEYS: set[str] = {
    "DEEPGRAM_API_KEY",
    "CARTESIA_API_KEY",
    "TTS_VOICE",
    "INTERVIEW_SERVICE_URL",
    "INTERVIEW_PROFILE_PATH",
}

# Native config
APP_ID: str = "com.interview-voice.engine"
PROFILE_FILENAME: str = "resume.json"
