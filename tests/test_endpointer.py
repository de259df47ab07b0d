"""Tests for SilenceEndpointer — quiet-period end-of-turn detection.

Uses a short quiet period so the real event loop timer can be exercised.

Run:
    uv run pytest tests/test_endpointer.py -v
"""

import asyncio

import pytest

from interview_voice.audio.endpointer import SilenceEndpointer

QUIET = 0.05


def _make(text: str = "my answer"):
    buffer = {"text": text}
    fired: list[str] = []
    ep = SilenceEndpointer(lambda: buffer["text"], fired.append, quiet_period=QUIET)
    return ep, buffer, fired


class TestFiring:
    @pytest.mark.asyncio
    async def test_fires_after_quiet_period(self):
        ep, _, fired = _make()
        ep.arm()
        assert ep.armed
        await asyncio.sleep(QUIET * 3)
        assert fired == ["my answer"]
        assert not ep.armed

    @pytest.mark.asyncio
    async def test_snapshot_is_read_at_expiry(self):
        ep, buffer, fired = _make("first")
        ep.arm()
        buffer["text"] = "first and more  "
        await asyncio.sleep(QUIET * 3)
        assert fired == ["first and more"]

    @pytest.mark.asyncio
    async def test_empty_buffer_never_fires(self):
        ep, _, fired = _make("   ")
        ep.arm()
        await asyncio.sleep(QUIET * 3)
        assert fired == []

    @pytest.mark.asyncio
    async def test_rearm_restarts_the_quiet_period(self):
        ep, _, fired = _make()
        ep.arm()
        await asyncio.sleep(QUIET * 0.6)
        ep.arm()
        await asyncio.sleep(QUIET * 0.6)
        assert fired == []
        await asyncio.sleep(QUIET * 2)
        assert fired == ["my answer"]


class TestDisarm:
    @pytest.mark.asyncio
    async def test_sequence_ending_in_disarm_never_fires(self):
        ep, _, fired = _make()
        ep.arm()
        ep.disarm()
        ep.arm()
        ep.arm()
        ep.disarm()
        await asyncio.sleep(QUIET * 3)
        assert fired == []
        assert not ep.armed

    @pytest.mark.asyncio
    async def test_stale_generation_is_discarded(self):
        ep, _, fired = _make()
        ep.arm()
        stale = ep.generation
        ep.disarm()
        # Simulate a callback the loop had already dequeued.
        ep._fire(stale)
        assert fired == []

    def test_disarm_without_loop_is_safe(self):
        ep, _, fired = _make()
        ep.disarm()
        assert not ep.armed
        assert fired == []
