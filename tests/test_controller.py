"""
Tests for PollingController pause/resume gating.
"""

import asyncio

import pytest

from discountsync.core.state import PollingController, PollingState


class TestPollingController:
    """Test the active flag and its listeners."""

    def test_starts_active(self):
        """Verify a new controller is active."""
        controller = PollingController(PollingState())

        assert controller.is_active is True

    def test_pause_and_resume_flip_state(self):
        """Verify pause() and resume() flip the active flag."""
        state = PollingState()
        controller = PollingController(state)

        controller.pause()
        assert state.active is False

        controller.resume()
        assert state.active is True

    def test_resume_notifies_listeners_once_per_transition(self):
        """Verify resume listeners fire only on paused-to-active."""
        controller = PollingController(PollingState())
        calls = []
        controller.on_resume(lambda: calls.append("resumed"))

        controller.resume()  # already active
        controller.pause()
        controller.resume()
        controller.resume()

        assert calls == ["resumed"]

    def test_loading_flags_start_set(self):
        """Verify both loading flags start set."""
        state = PollingState()

        assert state.loading_long is True
        assert state.loading_short is True


class TestWaitActive:
    """Test suspension while paused."""

    @pytest.mark.asyncio
    async def test_returns_immediately_when_active(self):
        """Verify wait_active() returns at once when active."""
        controller = PollingController(PollingState())

        await asyncio.wait_for(controller.wait_active(), timeout=0.5)

    @pytest.mark.asyncio
    async def test_blocks_until_resumed(self):
        """Verify wait_active() suspends until resume()."""
        controller = PollingController(PollingState())
        controller.pause()

        waiter = asyncio.create_task(controller.wait_active())
        await asyncio.sleep(0.01)
        assert not waiter.done()

        controller.resume()
        await asyncio.wait_for(waiter, timeout=0.5)

    @pytest.mark.asyncio
    async def test_initially_paused_state(self):
        """Verify a controller built paused does not release waiters."""
        controller = PollingController(PollingState(active=False))

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(controller.wait_active(), timeout=0.01)
