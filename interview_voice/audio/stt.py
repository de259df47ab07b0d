"""Deepgram streaming recognizer — continuous capture with interim results."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, Optional

import websockets

from interview_voice import constants
from interview_voice.events import (
    RecognitionEnded,
    RecognitionError,
    RecognitionFragment,
    RecognizerEvent,
)

logger = logging.getLogger(__name__)


class DeepgramRecognizer:
    """Streams PCM-16 audio to Deepgram and emits transcript fragments.

    Implements the :class:`~interview_voice.audio.capabilities.Recognizer`
    protocol. Audio arrives through :meth:`feed_audio` (the WebSocket bridge
    forwards the browser's microphone frames); results are pushed through
    ``on_event`` as interim/final fragments, followed by exactly one
    :class:`RecognitionEnded` when the stream closes for any reason.

    Each :meth:`start` opens a new session keyed by its audio queue. Once a
    session is stopped or superseded, anything it still produces (Deepgram
    flushing finals after CloseStream, a closing-stream error, its end
    notice) is dropped so it cannot leak into the next capture.

    Parameters
    ----------
    api_key : str
        Deepgram API key (from DEEPGRAM_API_KEY env var).
    sample_rate : int
        Sample rate of the incoming PCM stream (default 16 kHz).
    language : str
        BCP-47 language tag passed to Deepgram.
    """

    WS_URL = "wss://api.deepgram.com/v1/listen"

    def __init__(
        self,
        api_key: str,
        *,
        sample_rate: int = constants.AUDIO_SAMPLE_RATE,
        language: str = constants.RECOGNIZER_LANGUAGE,
    ) -> None:
        self._api_key = api_key
        self._sample_rate = sample_rate
        self._language = language

        self.on_event: Optional[Callable[[RecognizerEvent], None]] = None

        self._audio: asyncio.Queue[bytes | None] | None = None
        self._task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Open a new streaming session; no-op if one is already capturing."""
        if self.running and self._audio is not None:
            return
        self._audio = asyncio.Queue()
        self._task = asyncio.create_task(self._run(self._audio))
        logger.info("[STT] Recognition started.")

    async def stop(self) -> None:
        """Ask Deepgram to flush and close; ``RecognitionEnded`` follows."""
        if self._audio is not None:
            self._audio.put_nowait(None)
            self._audio = None
            logger.info("[STT] Recognition stop requested.")

    def feed_audio(self, chunk: bytes) -> None:
        """Queue one PCM-16 frame; dropped when no session is open."""
        if self._audio is not None and self.running:
            self._audio.put_nowait(chunk)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit(self, event: RecognizerEvent, audio: asyncio.Queue) -> None:
        if self._audio is not audio:
            logger.debug("[STT] Dropping %s from a stopped session.", type(event).__name__)
            return
        if self.on_event is not None:
            self.on_event(event)

    def _url(self) -> str:
        return (
            f"{self.WS_URL}"
            f"?encoding=linear16&sample_rate={self._sample_rate}"
            f"&channels=1&model=nova-2&language={self._language}"
            f"&interim_results=true&smart_format=true"
        )

    async def _send_audio(self, ws, audio: asyncio.Queue) -> None:
        while True:
            chunk = await audio.get()
            if chunk is None:
                # Signal end of audio stream per Deepgram docs
                await ws.send(json.dumps({"type": "CloseStream"}))
                return
            await ws.send(chunk)

    def _parse_message(self, raw: str | bytes) -> RecognitionFragment | None:
        text = raw if isinstance(raw, str) else raw.decode()
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            return None

        msg_type = payload.get("type", "")
        if msg_type == "Results":
            alternatives = payload.get("channel", {}).get("alternatives") or [{}]
            transcript = alternatives[0].get("transcript", "")
            if transcript:
                return RecognitionFragment(
                    transcript=transcript,
                    is_final=bool(payload.get("is_final", False)),
                )
        elif msg_type == "Metadata":
            logger.debug("[STT] Deepgram metadata: request_id=%s", payload.get("request_id"))
        return None

    async def _run(self, audio: asyncio.Queue) -> None:
        if not self._api_key:
            logger.error("[STT] DEEPGRAM_API_KEY not set — cannot transcribe.")
            self._emit(RecognitionError("Speech recognition is not configured."), audio)
            self._emit(RecognitionEnded(), audio)
            if self._audio is audio:
                self._audio = None
            return

        headers = {"Authorization": f"Token {self._api_key}"}
        try:
            async with websockets.connect(self._url(), additional_headers=headers) as ws:
                send_task = asyncio.create_task(self._send_audio(ws, audio))
                try:
                    async for raw in ws:
                        fragment = self._parse_message(raw)
                        if fragment is not None:
                            self._emit(fragment, audio)
                finally:
                    send_task.cancel()
        except Exception as exc:
            logger.warning("[STT] Streaming error: %s", exc)
            self._emit(RecognitionError(str(exc) or exc.__class__.__name__), audio)
        finally:
            logger.info("[STT] Recognition ended.")
            self._emit(RecognitionEnded(), audio)
            if self._audio is audio:
                self._audio = None
