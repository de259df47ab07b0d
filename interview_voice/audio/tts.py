"""Cartesia Sonic synthesizer — streams interviewer speech to the client."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import uuid
from typing import Any, AsyncGenerator, Protocol

import websockets

from interview_voice import constants

logger = logging.getLogger(__name__)

_DEFAULT_VOICE_ID = "ee7ea9f8-c0c1-498c-9279-764d6b56d189"  # Cartesia "Oliver - Customer Chap"


class AudioSink(Protocol):
    async def send_bytes(self, data: bytes) -> None: ...

    async def send_json(self, data: Any) -> None: ...


class CartesiaSynthesizer:
    """Implements the Synthesizer protocol on top of Cartesia's WebSocket API.

    Audio is forwarded to *sink* (the session WebSocket) framed by
    ``tts_start`` / ``tts_end`` control messages. ``speak`` returns after the
    last chunk plus a short tail delay so the client's playback can drain
    before the microphone is offered again.

    Parameters
    ----------
    api_key : str
        Cartesia API key (from CARTESIA_API_KEY env var).
    sink : AudioSink
        Receives PCM frames and control messages.
    voice_id : str
        Cartesia voice ID to use for synthesis.
    sample_rate : int
        Output PCM sample rate (default 16 kHz to match the browser pipeline).
    tail_delay : float
        Seconds to wait after the last chunk before reporting completion.
    """

    WS_URL = "wss://api.cartesia.ai/tts/websocket"
    API_VERSION = "2025-04-16"
    MODEL_ID = "sonic-3"

    def __init__(
        self,
        api_key: str,
        sink: AudioSink,
        *,
        voice_id: str = "",
        sample_rate: int = constants.AUDIO_SAMPLE_RATE,
        tail_delay: float = constants.TTS_TAIL_DELAY,
    ) -> None:
        self._api_key = api_key
        self._sink = sink
        self._voice_id = voice_id or _DEFAULT_VOICE_ID
        self._sample_rate = sample_rate
        self._tail_delay = tail_delay

    async def speak(
        self, text: str, rate: float = 1.0, pitch: float = 1.0, volume: float = 1.0
    ) -> None:
        if pitch != 1.0:
            logger.debug("[TTS] Cartesia has no pitch control — ignoring pitch=%.2f", pitch)

        await self._sink.send_json({"type": "control", "action": "tts_start", "text": text})
        chunk_count = 0
        async for audio_chunk in self.synthesize_stream(text, speed=rate, volume=volume):
            await self._sink.send_bytes(audio_chunk)
            chunk_count += 1

        logger.info("[TTS] Sent %d audio chunks to client.", chunk_count)
        if chunk_count == 0:
            logger.warning("[TTS] Zero audio chunks — Cartesia may have rejected the request.")

        await self._sink.send_json({"type": "control", "action": "tts_end"})
        await asyncio.sleep(self._tail_delay)

    async def cancel(self) -> None:
        """Tell the client to drop any audio it is still playing."""
        try:
            await self._sink.send_json({"type": "control", "action": "halt_audio_playback"})
        except Exception as exc:
            logger.debug("[TTS] Could not send halt to client: %s", exc)

    async def synthesize_stream(
        self, text: str, *, speed: float = 1.0, volume: float = 1.0
    ) -> AsyncGenerator[bytes, None]:
        """Synthesize *text* and yield PCM-16 audio chunks as they arrive."""
        if not self._api_key:
            logger.error("[TTS] CARTESIA_API_KEY is empty — cannot synthesize audio.")
            return

        ws_url = (
            f"{self.WS_URL}"
            f"?api_key={self._api_key}"
            f"&cartesia_version={self.API_VERSION}"
        )

        request_id = str(uuid.uuid4())
        payload = json.dumps({
            "model_id": self.MODEL_ID,
            "transcript": text,
            "voice": {
                "mode": "id",
                "id": self._voice_id,
            },
            "generation_config": {
                "speed": speed,
                "volume": volume,
            },
            "output_format": {
                "container": "raw",
                "encoding": "pcm_s16le",
                "sample_rate": self._sample_rate,
            },
            "context_id": request_id,
            "continue": False,
        })

        try:
            async with websockets.connect(ws_url) as ws:
                await ws.send(payload)
                logger.info("[TTS] Synthesizing: %.80s...", text)

                async for raw in ws:
                    # Binary frame = raw PCM audio
                    if isinstance(raw, bytes):
                        yield raw
                        continue

                    try:
                        msg = json.loads(raw)
                    except json.JSONDecodeError:
                        continue

                    msg_type = msg.get("type", "")
                    if msg_type == "done":
                        logger.debug("[TTS] Stream complete for request %s", request_id)
                        break
                    elif msg_type == "error":
                        logger.error("[TTS] Cartesia error: %s", msg)
                        break
                    elif msg_type == "chunk" and "data" in msg:
                        yield base64.b64decode(msg["data"])

        except websockets.exceptions.InvalidStatus as exc:
            logger.error(
                "[TTS] Cartesia rejected connection (status %s) — check CARTESIA_API_KEY.",
                exc.response.status_code,
            )
        except websockets.exceptions.WebSocketException as exc:
            logger.error("[TTS] WebSocket error: %s", exc)
        except OSError as exc:
            logger.error("[TTS] Connection failed: %s", exc)
