"""
Long-poll channel.

Issues GET /poll/long back to back and accumulates the discount counter:

    Idle -> Requesting -> {Success, Failure} -> Requesting -> ...

The loop runs as one asyncio task, so at most one long poll is in flight and
stopping the channel is a plain task cancellation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..client import ProductServiceClient
from ..core.state import PollingController, SyncState
from ..exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)


class LongPollChannel:
    """Self-rescheduling long-poll loop feeding the discount counter."""

    def __init__(
        self,
        client: ProductServiceClient,
        state: SyncState,
        controller: PollingController,
        retry_delay: float = 2.0,
    ):
        self.client = client
        self.state = state
        self.controller = controller
        self.retry_delay = retry_delay
        self.requests = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="long-poll")
        logger.info("Long-poll channel started")

    async def stop(self) -> None:
        """Cancel the loop, including a pending backoff or in-flight request."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.exception(f"Long-poll loop ended with an error: {e}")
        logger.info("Long-poll channel stopped")

    async def _run(self) -> None:
        while True:
            # Paused: stay Idle until resumed.
            await self.controller.wait_active()
            try:
                delay = await self.poll_once()
            except Exception as e:
                logger.exception(f"Long poll step failed, retrying in {self.retry_delay}s: {e}")
                self.state.polling.loading_long = True
                delay = self.retry_delay
            # Zero delay still yields to the event loop before the next request.
            await asyncio.sleep(delay)

    async def poll_once(self) -> float:
        """Perform one long poll and apply its result.

        Returns the delay before the next request: 0 after a success, the
        retry delay after a failure.
        """
        self.requests += 1
        try:
            count = await self.client.long_poll()
        except ServiceUnavailableError as e:
            logger.warning(f"Long poll failed, retrying in {self.retry_delay}s: {e}")
            self.state.polling.loading_long = True
            return self.retry_delay

        logger.debug(f"Long poll returned cantidad={count}")
        if count > 0:
            self.state.counter.add(count)
        self.state.polling.loading_long = False
        return 0.0
