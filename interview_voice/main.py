"""FastAPI app — health check + WebSocket bridge for one interview session.

Data flow:
  1. Client opens /ws/interview/{interview_id} and sends ``session_init``.
  2. The resume profile is loaded; failure closes the socket.
  3. Microphone PCM-16 frames → Deepgram recognizer (only while listening).
  4. JSON commands → TurnController events.
  5. Controller publishes voice/transcript/conversation/session state and
     streams Cartesia audio back over the same socket.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from interview_voice import __version__
from interview_voice.audio.stt import DeepgramRecognizer
from interview_voice.audio.tts import CartesiaSynthesizer
from interview_voice.config import Settings, load_settings
from interview_voice.controller import TurnController
from interview_voice.errors import ErrorCode, ProfileLoadError, TurnError, send_error
from interview_voice.events import (
    EndInterview,
    RetrySubmission,
    StartListening,
    StopListening,
    SubmitText,
    ToggleAudio,
    TurnEvent,
)
from interview_voice.interview_client import InterviewServiceClient
from interview_voice.pipeline.session_context import SessionContext
from interview_voice.profile import load_profile
from interview_voice.schemas import SessionInit
from interview_voice.telemetry import init_telemetry

logger = logging.getLogger(__name__)

_COMMANDS: dict[str, Callable[[dict], TurnEvent]] = {
    "start_listening": lambda _: StartListening(),
    "stop_listening": lambda _: StopListening(),
    "text_input": lambda payload: SubmitText(str(payload.get("text", ""))),
    "retry_submission": lambda _: RetrySubmission(),
    "toggle_audio": lambda _: ToggleAudio(),
    "end_interview": lambda _: EndInterview(),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Resolve settings and install tracing once per process."""
    settings = load_settings()
    logging.getLogger("interview_voice").setLevel(settings.log_level)
    init_telemetry(settings.otel_exporter)
    app.state.settings = settings
    logger.info(
        "[Config] Interview service %s, recognizer=%s, synthesizer=%s",
        settings.interview_service_url,
        "on" if settings.deepgram_api_key else "off",
        "on" if settings.cartesia_api_key else "off",
    )
    yield


app = FastAPI(title="Interview Voice Engine", version=__version__, lifespan=lifespan)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


async def _receive_session_init(websocket: WebSocket) -> SessionInit | None:
    """Wait for the handshake; ``None`` if the first message is not a valid one."""
    message = await websocket.receive()
    if message.get("type") == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    raw = message.get("text")
    if raw is None:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict) or payload.get("type") != "session_init":
        return None
    try:
        return SessionInit.model_validate(payload)
    except ValidationError as exc:
        logger.warning("[WS] Invalid session_init: %s", exc)
        return None


def _build_controller(
    websocket: WebSocket, settings: Settings, ctx: SessionContext
) -> tuple[TurnController, DeepgramRecognizer | None]:
    recognizer = (
        DeepgramRecognizer(settings.deepgram_api_key) if settings.deepgram_api_key else None
    )
    synthesizer = (
        CartesiaSynthesizer(settings.cartesia_api_key, websocket, voice_id=settings.tts_voice)
        if settings.cartesia_api_key
        else None
    )
    client = InterviewServiceClient(
        settings.interview_service_url, timeout=settings.interview_service_timeout
    )
    controller = TurnController(
        ctx,
        client,
        websocket,
        recognizer=recognizer,
        synthesizer=synthesizer,
        quiet_period=settings.silence_timeout,
    )
    return controller, recognizer


async def _dispatch_command(
    websocket: WebSocket, controller: TurnController, session_id: str, raw: str
) -> None:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("[WS] Non-JSON text message ignored")
        payload = None

    msg_type = payload.get("type", "") if isinstance(payload, dict) else ""
    factory = _COMMANDS.get(msg_type)
    if factory is None:
        await send_error(websocket, TurnError(
            code=ErrorCode.E_BAD_REQUEST,
            message=f"Unsupported message type: {msg_type or '<none>'}",
            recoverable=True,
            session_id=session_id,
        ))
        return

    logger.debug("[WS] Command %s", msg_type)
    controller.post(factory(payload))


@app.websocket("/ws/interview/{interview_id}")
async def interview_stream(websocket: WebSocket, interview_id: str) -> None:
    await websocket.accept()
    settings: Settings = websocket.app.state.settings
    logger.info("[Session] Interview socket opened: %s", interview_id)

    try:
        init = await _receive_session_init(websocket)
    except WebSocketDisconnect:
        logger.info("[Session] Client left before session_init: %s", interview_id)
        return
    if init is None:
        await send_error(websocket, TurnError(
            code=ErrorCode.E_BAD_REQUEST,
            message="The first message must be a valid session_init.",
            recoverable=False,
            session_id=interview_id,
        ))
        await websocket.close(code=1008)
        return

    try:
        profile = load_profile(settings.profile_path)
    except ProfileLoadError as exc:
        await send_error(websocket, TurnError(
            code=exc.code,
            message=exc.message,
            recoverable=False,
            session_id=interview_id,
        ))
        await websocket.close(code=1011)
        return

    ctx = SessionContext.seeded(interview_id, profile, init.to_bootstrap())
    controller, recognizer = _build_controller(websocket, settings, ctx)
    await controller.start()
    loop_task = asyncio.create_task(controller.run())

    try:
        while True:
            try:
                message = await websocket.receive()
            except RuntimeError:
                # "Cannot call receive once a disconnect message has been received"
                logger.info("[WS] Client disconnected (runtime)")
                break

            if message.get("type") == "websocket.disconnect":
                logger.info("[WS] Client disconnected")
                break

            if message.get("bytes") is not None:
                # Only forward microphone audio while capturing; never while
                # the interviewer is speaking (prevents echo feedback).
                if recognizer is not None and ctx.voice.listening and not ctx.voice.speaking:
                    recognizer.feed_audio(message["bytes"])
            elif message.get("text") is not None:
                await _dispatch_command(websocket, controller, interview_id, message["text"])
    except WebSocketDisconnect:
        logger.info("[WS] Client disconnected")
    finally:
        loop_task.cancel()
        await asyncio.gather(loop_task, return_exceptions=True)
        await controller.shutdown()


def main() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
        stream=sys.stderr,
    )
    uvicorn.run(app, host="127.0.0.1", port=8001)


if __name__ == "__main__":
    main()
