"""Transcript accumulator — merges recognizer fragments into the pending answer."""

from __future__ import annotations

import logging

from interview_voice.models import PendingResponse

logger = logging.getLogger(__name__)


class TranscriptAccumulator:
    """Folds interim and final fragments into a :class:`PendingResponse`.

    Final fragments are appended to ``finalized`` (space-separated) and clear
    the interim text. Interim fragments replace ``interim`` wholesale: the
    recognizer already sends the cumulative text of the current utterance, so
    concatenating them locally would duplicate words.
    """

    def __init__(self, pending: PendingResponse | None = None) -> None:
        self.pending = pending if pending is not None else PendingResponse()

    def add(self, transcript: str, *, is_final: bool) -> None:
        if is_final:
            text = transcript.strip()
            if text:
                self.pending.finalized = (
                    f"{self.pending.finalized} {text}" if self.pending.finalized else text
                )
            self.pending.interim = ""
        else:
            self.pending.interim = transcript

    def snapshot(self) -> str:
        """Return the trimmed finalized text followed by the live interim text."""
        return f"{self.pending.finalized} {self.pending.interim}".strip()

    def restore(self, text: str) -> None:
        """Put a previously submitted draft back as finalized text."""
        self.pending.finalized = text.strip()
        self.pending.interim = ""

    def clear(self) -> None:
        self.pending.clear()
