"""
Tests for LongPollChannel.
"""

import asyncio

import pytest

from discountsync.channels.long_poll import LongPollChannel
from discountsync.exceptions import ServiceUnavailableError
from discountsync.storage import COUNTER_KEY


@pytest.fixture
def channel(client, state, controller):
    return LongPollChannel(client, state, controller, retry_delay=2.0)


class TestPollOnce:
    """Test a single Requesting -> Success/Failure step."""

    @pytest.mark.asyncio
    async def test_success_adds_count(self, channel, client, state, storage):
        """Verify a success adds its count and clears loading."""
        client.long_poll.return_value = 3

        delay = await channel.poll_once()

        assert delay == 0.0
        assert state.counter.value == 3
        assert storage.get(COUNTER_KEY) == "3"
        assert state.polling.loading_long is False

    @pytest.mark.asyncio
    async def test_zero_count_is_success_without_increment(self, channel, client, state, storage):
        """Verify a zero count is a success without an increment."""
        client.long_poll.return_value = 0

        delay = await channel.poll_once()

        assert delay == 0.0
        assert state.counter.value == 0
        assert storage.get(COUNTER_KEY) is None
        assert state.polling.loading_long is False

    @pytest.mark.asyncio
    async def test_failure_sets_loading_and_backs_off(self, channel, client, state):
        """Verify a failure sets loading and returns the retry delay."""
        state.polling.loading_long = False
        client.long_poll.side_effect = ServiceUnavailableError("long poll", "refused")

        delay = await channel.poll_once()

        assert delay == 2.0
        assert state.polling.loading_long is True
        assert state.counter.value == 0

    @pytest.mark.asyncio
    async def test_counter_is_sum_of_positive_counts(self, channel, client, state):
        """Verify the counter equals the sum of positive counts."""
        client.long_poll.side_effect = [
            2,
            0,
            ServiceUnavailableError("long poll", "timeout"),
            5,
            1,
        ]

        for _ in range(5):
            await channel.poll_once()

        assert state.counter.value == 8


class TestLoop:
    """Test the scheduled loop: rescheduling, pause gating and resume."""

    @pytest.mark.asyncio
    async def test_retries_after_failures(self, client, state, controller, wait_until):
        """Verify the loop retries after failures until it succeeds."""
        outcomes = [
            ServiceUnavailableError("long poll", "refused"),
            ServiceUnavailableError("long poll", "refused"),
            4,
        ]

        async def long_poll():
            outcome = outcomes.pop(0) if outcomes else 0
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        client.long_poll.side_effect = long_poll
        channel = LongPollChannel(client, state, controller, retry_delay=0.01)

        channel.start()
        assert await wait_until(lambda: state.counter.value == 4)
        await channel.stop()

        assert state.polling.loading_long is False

    @pytest.mark.asyncio
    async def test_pause_stops_new_requests_and_resume_restarts(
        self, client, state, controller, wait_until
    ):
        """Verify pausing stops new requests and resuming restarts them."""
        calls = 0

        async def long_poll():
            nonlocal calls
            calls += 1
            if calls == 2:
                # Paused while this request is in flight.
                controller.pause()
                return 5
            return 0

        client.long_poll.side_effect = long_poll
        channel = LongPollChannel(client, state, controller, retry_delay=0.0)

        channel.start()
        assert await wait_until(lambda: not controller.is_active)
        for _ in range(20):
            await asyncio.sleep(0)

        # The in-flight result was applied, nothing new was dispatched.
        assert calls == 2
        assert state.counter.value == 5
        assert channel.running

        controller.resume()
        assert await wait_until(lambda: calls > 2)
        await channel.stop()

    @pytest.mark.asyncio
    async def test_paused_before_start_stays_idle(self, client, state, controller):
        """Verify a channel started while paused sends nothing."""
        controller.pause()
        channel = LongPollChannel(client, state, controller)

        channel.start()
        await asyncio.sleep(0.01)
        await channel.stop()

        client.long_poll.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_end_loop(self, client, state, controller, wait_until):
        """Verify an unexpected error in one step backs off and the loop keeps polling."""
        outcomes = [RuntimeError("boom"), 3]

        async def long_poll():
            outcome = outcomes.pop(0) if outcomes else 0
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        client.long_poll.side_effect = long_poll
        channel = LongPollChannel(client, state, controller, retry_delay=0.01)

        channel.start()
        assert await wait_until(lambda: state.counter.value == 3)
        assert channel.running
        await channel.stop()

    @pytest.mark.asyncio
    async def test_stop_logs_error_of_finished_loop(self, client, state, controller):
        """Verify stop() does not re-raise an error the loop task ended with."""
        channel = LongPollChannel(client, state, controller)

        async def crashed():
            raise OSError("disk full")

        channel._task = asyncio.create_task(crashed())
        await asyncio.sleep(0)

        await channel.stop()

        assert not channel.running

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_backoff(self, client, state, controller, wait_until):
        """Verify stop() cancels a pending backoff sleep."""
        client.long_poll.side_effect = ServiceUnavailableError("long poll", "refused")
        channel = LongPollChannel(client, state, controller, retry_delay=60.0)

        channel.start()
        assert await wait_until(lambda: channel.requests == 1)
        await channel.stop()

        assert not channel.running
        assert client.long_poll.await_count == 1

    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight_request(self, client, state, controller, wait_until):
        """Verify stop() cancels a hung request."""
        never = asyncio.Event()

        async def hang():
            await never.wait()

        client.long_poll.side_effect = hang
        channel = LongPollChannel(client, state, controller)

        channel.start()
        assert await wait_until(lambda: channel.requests == 1)
        await asyncio.wait_for(channel.stop(), timeout=1.0)

        assert not channel.running
