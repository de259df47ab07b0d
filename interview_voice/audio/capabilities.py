"""Capability interfaces consumed by the Turn Controller.

Speech recognition and synthesis are black boxes: the controller only issues
commands and reacts to events, so any provider (Deepgram, Cartesia, or a test
fake) can be injected.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from interview_voice.events import RecognizerEvent


class Recognizer(Protocol):
    """Continuous speech recognizer with interim results.

    Events are pushed through ``on_event`` in emission order; the controller
    wires this hook when it is constructed.
    """

    on_event: Optional[Callable[[RecognizerEvent], None]]

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


class Synthesizer(Protocol):
    """Text-to-speech output.

    ``speak`` returns when the utterance has finished playing; ``cancel``
    halts any utterance in progress.
    """

    async def speak(
        self, text: str, rate: float = 1.0, pitch: float = 1.0, volume: float = 1.0
    ) -> None: ...

    async def cancel(self) -> None: ...
