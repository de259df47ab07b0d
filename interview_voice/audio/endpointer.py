"""SilenceEndpointer — declares end-of-turn after a fixed quiet period.

Every recognizer fragment re-arms the timer; if nothing arrives for
``quiet_period`` seconds the end-of-turn callback receives the accumulator
snapshot. Each ``arm()`` bumps a generation counter and the timer callback
carries the generation it was armed with, so a callback that races its own
cancellation is recognised as stale and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from interview_voice import constants

logger = logging.getLogger(__name__)


class SilenceEndpointer:
    """Single-shot, restartable silence timer on the running event loop.

    Parameters
    ----------
    snapshot : Callable[[], str]
        Returns the current pending answer; read at expiry, not at arm time.
    on_end_of_turn : Callable[[str], None]
        Invoked with the trimmed snapshot when the timer expires and the
        snapshot is non-empty. Empty or whitespace-only snapshots never fire.
    quiet_period : float
        Seconds of silence that end a turn (default 2.0).
    """

    def __init__(
        self,
        snapshot: Callable[[], str],
        on_end_of_turn: Callable[[str], None],
        *,
        quiet_period: float = constants.SILENCE_TIMEOUT_MS / 1000,
    ) -> None:
        self._snapshot = snapshot
        self._on_end_of_turn = on_end_of_turn
        self._quiet_period = quiet_period

        self._handle: asyncio.TimerHandle | None = None
        self._generation: int = 0

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def generation(self) -> int:
        return self._generation

    def arm(self) -> None:
        """Cancel any pending timer and start a fresh quiet period."""
        self._cancel_handle()
        self._generation += 1
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._quiet_period, self._fire, self._generation)

    def disarm(self) -> None:
        """Cancel the pending timer without firing."""
        if self._handle is not None:
            logger.debug("[Endpointer] Disarmed (generation %d).", self._generation)
        self._cancel_handle()
        # A callback already queued by the loop must not match any more.
        self._generation += 1

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug(
                "[Endpointer] Stale timer %d discarded (current %d).", generation, self._generation
            )
            return
        self._handle = None

        text = self._snapshot().strip()
        if not text:
            logger.debug("[Endpointer] Quiet period elapsed with empty buffer — ignored.")
            return

        logger.info("[Endpointer] %.1fs of silence — end of turn.", self._quiet_period)
        self._on_end_of_turn(text)
