"""TurnController — turns recognizer output into submitted interview turns.

State flow::

    IDLE ──start──▶ LISTENING ──silence / stop / text──▶ SUBMITTING
      ▲                 │ stop (empty)                        │
      │◀────────────────┘                     reply, audio on │ reply, muted
      │                                                       ▼     │
      │◀──────────────── speech finished ──────────────── SPEAKING   │
      │◀────────────────────────────────────────────────────────────┘
    any ──end interview──▶ COMPLETED

Every input (recognizer events, silence expiry, synthesis and submission
completion, client commands) is posted to one queue and handled by
:meth:`run` one at a time. Nothing else mutates the session context, so the
handlers need no locks; the network exchange is the only work that runs
outside a handler, and it reports back through the same queue.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from interview_voice import constants
from interview_voice.audio.accumulator import TranscriptAccumulator
from interview_voice.audio.capabilities import Recognizer, Synthesizer
from interview_voice.audio.endpointer import SilenceEndpointer
from interview_voice.audio.output_gate import OutputGate
from interview_voice.errors import (
    ErrorCode,
    InterviewServiceError,
    JSONSink,
    TurnError,
    send_error,
)
from interview_voice.events import (
    EndInterview,
    RecognitionEnded,
    RecognitionError,
    RecognitionFragment,
    RetrySubmission,
    SilenceElapsed,
    SpeechFinished,
    StartListening,
    StopListening,
    SubmissionCompleted,
    SubmitText,
    ToggleAudio,
    TurnEvent,
)
from interview_voice.interview_client import InterviewServiceClient
from interview_voice.models import InterviewStatus, Role, TurnMessage, TurnState
from interview_voice.pipeline.session_context import SessionContext
from interview_voice.pipeline.submission_phase import (
    abandon_submission,
    apply_response,
    begin_submission,
    run_exchange,
)
from interview_voice.utils import generate_submission_id

logger = logging.getLogger(__name__)

_GENERIC_SUBMIT_ERROR = "Failed to get interview response. Please try again."


class TurnController:
    """Owns one interview session's turn-taking.

    Parameters
    ----------
    ctx : SessionContext
        Session state; the controller is its only writer.
    client : InterviewServiceClient
        Scores answers and returns the next interviewer message.
    sink : JSONSink
        Receives state, transcript, conversation and error messages
        (normally the session WebSocket).
    recognizer, synthesizer :
        Injected capabilities; ``None`` when unavailable in this environment.
    quiet_period : float
        Seconds of silence that end a spoken answer.
    """

    def __init__(
        self,
        ctx: SessionContext,
        client: InterviewServiceClient,
        sink: JSONSink,
        *,
        recognizer: Recognizer | None = None,
        synthesizer: Synthesizer | None = None,
        quiet_period: float = constants.SILENCE_TIMEOUT_MS / 1000,
    ) -> None:
        self.ctx = ctx
        self._client = client
        self._sink = sink
        self._recognizer = recognizer

        self._events: asyncio.Queue[TurnEvent] = asyncio.Queue()
        self._state = TurnState.COMPLETED if ctx.completed else TurnState.IDLE

        self.accumulator = TranscriptAccumulator(ctx.pending)
        self.endpointer = SilenceEndpointer(
            self.accumulator.snapshot,
            self._on_end_of_turn,
            quiet_period=quiet_period,
        )
        self.gate = OutputGate(synthesizer, ctx.voice, self._on_speech_finished)

        self._submission: asyncio.Task | None = None
        self._submission_id: str | None = None

        if recognizer is not None:
            recognizer.on_event = self.post

        self._handlers: dict[type, Callable[[Any], Awaitable[None]]] = {
            RecognitionFragment: self._handle_fragment,
            RecognitionError: self._handle_recognition_error,
            RecognitionEnded: self._handle_recognition_ended,
            SilenceElapsed: self._handle_silence,
            SpeechFinished: self._handle_speech_finished,
            SubmissionCompleted: self._handle_submission_completed,
            StartListening: self._handle_start_listening,
            StopListening: self._handle_stop_listening,
            SubmitText: self._handle_submit_text,
            RetrySubmission: self._handle_retry,
            ToggleAudio: self._handle_toggle_audio,
            EndInterview: self._handle_end_interview,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def is_submitting(self) -> bool:
        return self._submission_id is not None

    @property
    def can_listen(self) -> bool:
        return (
            self._recognizer is not None
            and self.ctx.in_progress
            and not self.ctx.voice.speaking
            and self._state in (TurnState.IDLE, TurnState.SPEAKING)
        )

    def post(self, event: TurnEvent) -> None:
        """Queue *event* for serial handling; safe from any callback."""
        self._events.put_nowait(event)

    async def start(self) -> None:
        """Announce missing capabilities, publish initial state, speak the opener."""
        if self._recognizer is None:
            await send_error(self._sink, TurnError(
                code=ErrorCode.E_RECOGNIZER_UNAVAILABLE,
                message="Speech recognition not supported in this environment.",
                recoverable=False,
                session_id=self.ctx.session_id,
            ))
        if not self.gate.available:
            await send_error(self._sink, TurnError(
                code=ErrorCode.E_SYNTHESIZER_UNAVAILABLE,
                message="Speech synthesis not supported in this environment.",
                recoverable=False,
                session_id=self.ctx.session_id,
            ))

        last = self.ctx.messages[-1] if self.ctx.messages else None
        if (
            self._state is TurnState.IDLE
            and last is not None
            and last.role is Role.INTERVIEWER
            and not last.pending
            and await self.gate.speak(last.content)
        ):
            self._state = TurnState.SPEAKING

        await self._publish_all()

    async def run(self) -> None:
        """Handle queued events until the task is cancelled."""
        while True:
            event = await self._events.get()
            try:
                await self.handle(event)
            except Exception as exc:
                logger.error(
                    "[Turn] Handler for %s failed: %s", type(event).__name__, exc, exc_info=True
                )

    async def handle(self, event: TurnEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning("[Turn] No handler for %r", event)
            return
        await handler(event)

    async def shutdown(self) -> None:
        """Release timers, capture, synthesis and any in-flight exchange."""
        self.endpointer.disarm()
        if self._submission is not None:
            self._submission.cancel()
        self._submission = None
        self._submission_id = None
        if self.ctx.voice.listening:
            await self._stop_capture()
        await self.gate.cancel()
        logger.info("[Turn] Session %s shut down.", self.ctx.session_id)

    # ------------------------------------------------------------------
    # Capability callbacks (run outside the handlers; they only post)
    # ------------------------------------------------------------------

    def _on_end_of_turn(self, snapshot: str) -> None:
        # The endpointer only fires for its current generation.
        self.post(SilenceElapsed(self.endpointer.generation, snapshot))

    def _on_speech_finished(self, generation: int) -> None:
        self.post(SpeechFinished(generation))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _handle_start_listening(self, _: StartListening) -> None:
        if not self.can_listen:
            logger.info(
                "[Turn] Start listening refused (state=%s, speaking=%s, recognizer=%s).",
                self._state.value,
                self.ctx.voice.speaking,
                self._recognizer is not None,
            )
            await self._publish_voice()
            return

        self.accumulator.clear()
        self.endpointer.disarm()
        self.ctx.voice.listening = True
        self._state = TurnState.LISTENING
        try:
            await self._recognizer.start()
        except Exception as exc:
            logger.error("[Turn] Recognizer failed to start: %s", exc, exc_info=True)
            self.post(RecognitionError(str(exc) or exc.__class__.__name__))
            return
        logger.info("[Turn] Listening.")
        await self._publish(self._voice_payload(), self.ctx.transcript_payload())

    async def _handle_stop_listening(self, _: StopListening) -> None:
        if self._state is not TurnState.LISTENING:
            return

        self.endpointer.disarm()
        await self._stop_capture()
        text = self.accumulator.snapshot()
        if text:
            await self._submit(text, reason="manual stop")
            return

        self.accumulator.clear()
        self._state = TurnState.IDLE
        logger.info("[Turn] Stopped listening with nothing to submit.")
        await self._publish(self._voice_payload(), self.ctx.transcript_payload())

    async def _handle_submit_text(self, event: SubmitText) -> None:
        text = event.text.strip()
        if not text or not self.ctx.in_progress:
            return
        if self.is_submitting:
            logger.info("[Turn] Typed answer dropped — submission already in flight.")
            return
        # A typed answer interrupts the interviewer.
        await self.gate.cancel()
        await self._submit(text, reason="text input")

    async def _handle_retry(self, _: RetrySubmission) -> None:
        if self._state is not TurnState.IDLE:
            return
        text = self.accumulator.snapshot()
        if text:
            await self._submit(text, reason="retry")

    async def _handle_toggle_audio(self, _: ToggleAudio) -> None:
        await self.gate.toggle_audio()
        if self._state is TurnState.SPEAKING and not self.ctx.voice.speaking:
            self._state = TurnState.IDLE
        await self._publish_voice()

    async def _handle_end_interview(self, _: EndInterview) -> None:
        if self._state is TurnState.COMPLETED:
            return

        self.endpointer.disarm()
        if self.ctx.voice.listening:
            await self._stop_capture()
        if self._submission is not None:
            self._submission.cancel()
            logger.info("[Turn] In-flight submission %s cancelled.", self._submission_id)
        self._submission = None
        self._submission_id = None
        self.ctx.drop_placeholder()
        self.accumulator.clear()
        await self.gate.cancel()

        self.ctx.messages.append(TurnMessage(
            role=Role.INTERVIEWER,
            content=constants.CLOSING_MESSAGE,
            feedback=constants.CLOSING_FEEDBACK,
            score=self.ctx.counters.running_score,
        ))
        self.ctx.status = self.ctx.status.advance(InterviewStatus.COMPLETED)
        self._state = TurnState.COMPLETED
        logger.info(
            "[Turn] Interview %s ended (score=%s).",
            self.ctx.session_id,
            self.ctx.counters.running_score,
        )

        await self.gate.speak(constants.CLOSING_MESSAGE)
        await self._publish_all()

    # ------------------------------------------------------------------
    # Recognizer events
    # ------------------------------------------------------------------

    async def _handle_fragment(self, event: RecognitionFragment) -> None:
        if self._state is not TurnState.LISTENING:
            logger.debug("[Turn] Fragment outside listening ignored: %.60s", event.transcript)
            return
        self.accumulator.add(event.transcript, is_final=event.is_final)
        # Any fragment, interim or final, is evidence of ongoing speech.
        self.endpointer.arm()
        await self._publish(self.ctx.transcript_payload())

    async def _handle_recognition_error(self, event: RecognitionError) -> None:
        logger.warning("[Turn] Recognition error: %s", event.error)
        self.endpointer.disarm()
        if self.ctx.voice.listening:
            await self._stop_capture()
        if self._state is TurnState.LISTENING:
            self._state = TurnState.IDLE
        await send_error(self._sink, TurnError(
            code=ErrorCode.E_RECOGNITION_FAILED,
            message="Speech recognition error. Please try again.",
            recoverable=True,
            session_id=self.ctx.session_id,
            details={"error": event.error},
        ))
        await self._publish_voice()

    async def _handle_recognition_ended(self, _: RecognitionEnded) -> None:
        if self._state is TurnState.LISTENING and self.ctx.voice.listening:
            logger.info("[Turn] Recognizer ended while listening — restarting.")
            try:
                await self._recognizer.start()
            except Exception as exc:
                logger.error("[Turn] Recognizer restart failed: %s", exc, exc_info=True)
                self.post(RecognitionError(str(exc) or exc.__class__.__name__))

    async def _handle_silence(self, event: SilenceElapsed) -> None:
        if self._state is not TurnState.LISTENING:
            return
        if event.generation != self.endpointer.generation:
            logger.debug(
                "[Turn] Stale silence %d discarded (current %d).",
                event.generation,
                self.endpointer.generation,
            )
            return
        text = self.accumulator.snapshot()
        if text:
            await self._submit(text, reason="silence")

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------

    async def _handle_speech_finished(self, event: SpeechFinished) -> None:
        if not self.gate.finish(event.generation):
            return
        if self._state is TurnState.SPEAKING:
            self._state = TurnState.IDLE
        await self._publish_voice()

    async def _handle_submission_completed(self, event: SubmissionCompleted) -> None:
        if event.submission_id != self._submission_id:
            logger.debug("[Turn] Stale submission result %s discarded.", event.submission_id)
            return
        self._submission = None
        self._submission_id = None

        if event.error is not None or event.response is None:
            abandon_submission(self.ctx, event.candidate_text)
            self.accumulator.restore(event.candidate_text)
            self._state = TurnState.IDLE
            await send_error(self._sink, TurnError(
                code=ErrorCode.E_SUBMISSION_FAILED,
                message=event.error or _GENERIC_SUBMIT_ERROR,
                recoverable=True,
                session_id=self.ctx.session_id,
            ))
            await self._publish_all()
            return

        message = apply_response(self.ctx, event.response)
        spoke = await self.gate.speak(message.content)
        if self.ctx.completed:
            self._state = TurnState.COMPLETED
        else:
            self._state = TurnState.SPEAKING if spoke else TurnState.IDLE
        logger.info(
            "[Turn] Turn %s resolved (questions=%d, score=%s, status=%s).",
            event.submission_id,
            self.ctx.counters.questions_asked,
            self.ctx.counters.running_score,
            self.ctx.status.value,
        )
        await self._publish_all()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _submit(self, text: str, *, reason: str) -> bool:
        """Single entry point for every submission trigger."""
        if self.is_submitting:
            logger.info("[Turn] Submission already in flight — dropping %s trigger.", reason)
            return False
        if not self.ctx.in_progress:
            logger.info(
                "[Turn] Interview %s — dropping %s trigger.", self.ctx.status.value, reason
            )
            return False

        submission_id = generate_submission_id()
        self._submission_id = submission_id

        self.endpointer.disarm()
        if self.ctx.voice.listening:
            await self._stop_capture()
        self.accumulator.clear()

        request = begin_submission(self.ctx, text)
        self._state = TurnState.SUBMITTING
        self._submission = asyncio.create_task(self._exchange(submission_id, text, request))
        logger.info("[Turn] Submitting %s (%s): %.80s", submission_id, reason, text)
        await self._publish_all()
        return True

    async def _exchange(self, submission_id: str, text: str, request) -> None:
        try:
            response = await run_exchange(self._client, request, submission_id)
        except InterviewServiceError as exc:
            self.post(SubmissionCompleted(submission_id, text, error=exc.message))
        except Exception as exc:
            logger.error("[Turn] Submission %s crashed: %s", submission_id, exc, exc_info=True)
            self.post(SubmissionCompleted(submission_id, text, error=_GENERIC_SUBMIT_ERROR))
        else:
            self.post(SubmissionCompleted(submission_id, text, response=response))

    async def _stop_capture(self) -> None:
        self.ctx.voice.listening = False
        if self._recognizer is not None:
            await self._recognizer.stop()

    def _voice_payload(self) -> dict[str, Any]:
        voice = self.ctx.voice
        return {
            "type": "voice_state",
            "turn_state": self._state.value,
            "listening": voice.listening,
            "speaking": voice.speaking,
            "audio_enabled": voice.audio_enabled,
            "can_listen": self.can_listen,
            "submitting": self.is_submitting,
        }

    async def _publish_voice(self) -> None:
        await self._publish(self._voice_payload())

    async def _publish_all(self) -> None:
        await self._publish(
            self._voice_payload(),
            self.ctx.transcript_payload(),
            self.ctx.conversation_payload(),
            self.ctx.session_payload(),
        )

    async def _publish(self, *payloads: dict[str, Any]) -> None:
        for payload in payloads:
            try:
                await self._sink.send_json(payload)
            except Exception as exc:
                logger.debug("[Turn] Failed to publish %s: %s", payload.get("type"), exc)
                return
