"""OutputGate — speech synthesis that never overlaps speech capture.

The gate owns the ``speaking`` and ``audio_enabled`` halves of the
controller's :class:`VoiceState`. Every utterance gets a generation number;
completion is reported back through ``on_finished(generation)`` and only the
current generation may clear ``speaking``, so an utterance cancelled by a mute
or a newer utterance cannot flip state afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from interview_voice import constants
from interview_voice.audio.capabilities import Synthesizer
from interview_voice.models import VoiceState
from interview_voice.telemetry import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer()


class OutputGate:
    def __init__(
        self,
        synthesizer: Synthesizer | None,
        voice: VoiceState,
        on_finished: Callable[[int], None],
    ) -> None:
        self._synthesizer = synthesizer
        self._voice = voice
        self._on_finished = on_finished

        self._generation: int = 0
        self._task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def available(self) -> bool:
        return self._synthesizer is not None

    @property
    def speaking(self) -> bool:
        return self._voice.speaking

    @property
    def audio_enabled(self) -> bool:
        return self._voice.audio_enabled

    @property
    def generation(self) -> int:
        return self._generation

    async def speak(self, text: str) -> bool:
        """Start speaking *text*; returns False when output is muted or absent."""
        if self._synthesizer is None or not self._voice.audio_enabled:
            return False
        if not text.strip():
            return False

        await self.cancel()
        self._generation += 1
        self._voice.speaking = True
        self._task = asyncio.create_task(self._run(text, self._generation))
        return True

    def finish(self, generation: int) -> bool:
        """Apply a completion report; stale generations are ignored."""
        if generation != self._generation or not self._voice.speaking:
            logger.debug(
                "[Gate] Ignoring completion of utterance %d (current %d).",
                generation,
                self._generation,
            )
            return False
        self._voice.speaking = False
        self._task = None
        return True

    async def toggle_audio(self) -> bool:
        """Flip ``audio_enabled``; muting cuts off the current utterance at once."""
        self._voice.audio_enabled = not self._voice.audio_enabled
        logger.info("[Gate] Audio %s.", "enabled" if self._voice.audio_enabled else "muted")
        if self._voice.speaking:
            await self.cancel()
        return self._voice.audio_enabled

    async def cancel(self) -> None:
        """Halt any utterance in progress and forget its completion."""
        if not self._voice.speaking and self._task is None:
            return
        self._generation += 1
        self._voice.speaking = False
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        if self._synthesizer is not None:
            await self._synthesizer.cancel()
        logger.info("[Gate] Synthesis cancelled.")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(self, text: str, generation: int) -> None:
        with tracer.start_as_current_span("interview.speak", attributes={"text.len": len(text)}):
            try:
                await self._synthesizer.speak(
                    text,
                    rate=constants.SPEECH_RATE,
                    pitch=constants.SPEECH_PITCH,
                    volume=constants.SPEECH_VOLUME,
                )
            except Exception as exc:
                logger.error("[Gate] Synthesis failed: %s", exc, exc_info=True)
        self._on_finished(generation)
