"""
Short-poll channel.

Uses APScheduler to:
1. Tick every ``interval`` seconds for the lifetime of the engine
   (a tick is a no-op while polling is paused)
2. Schedule a one-shot retry ``retry_delay`` seconds after a network failure

The retry does not replace the periodic tick, so a retry and a tick can both
have a request in flight; merging goes through ProductStore.merge, which
checks codes against the store at apply time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..client import ProductServiceClient
from ..core.state import PollingController, SyncState
from ..exceptions import ServiceUnavailableError
from ..models import Product

logger = logging.getLogger(__name__)

TICK_JOB_ID = "short_poll_tick"
RETRY_JOB_PREFIX = "short_poll_retry"


class ShortPollChannel:
    """Fixed-interval poll feeding the product store."""

    def __init__(
        self,
        client: ProductServiceClient,
        state: SyncState,
        controller: PollingController,
        scheduler: AsyncIOScheduler,
        interval: float = 1.0,
        retry_delay: float = 0.5,
    ):
        self.client = client
        self.state = state
        self.controller = controller
        self.scheduler = scheduler
        self.interval = interval
        self.retry_delay = retry_delay
        self.requests = 0
        self._retries = 0

    def start(self) -> None:
        """Register the periodic tick, first run immediately."""
        self.scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval),
            id=TICK_JOB_ID,
            name="Short poll tick",
            next_run_time=datetime.now(),
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Short-poll channel started. Polling every {self.interval}s")

    def stop(self) -> None:
        """Remove the tick and any pending retries from the scheduler."""
        for job in self.scheduler.get_jobs():
            if job.id == TICK_JOB_ID or job.id.startswith(RETRY_JOB_PREFIX):
                job.remove()

    async def tick(self) -> None:
        if not self.controller.is_active:
            return
        await self.poll_once()

    def trigger_now(self) -> None:
        """Run one gated poll as soon as possible, outside the periodic schedule."""
        self.scheduler.add_job(
            self.tick,
            trigger=DateTrigger(run_date=datetime.now()),
            name="Short poll (resume)",
        )

    def _schedule_retry(self) -> None:
        self._retries += 1
        self.scheduler.add_job(
            self.tick,
            trigger=DateTrigger(
                run_date=datetime.now() + timedelta(seconds=self.retry_delay)
            ),
            id=f"{RETRY_JOB_PREFIX}_{self._retries}",
            name="Short poll retry",
        )

    async def poll_once(self) -> List[Product]:
        """Fetch and merge once. Returns the products added to the store."""
        self.requests += 1
        try:
            result = await self.client.short_poll()
        except ServiceUnavailableError as e:
            logger.warning(f"Short poll failed, retrying in {self.retry_delay}s: {e}")
            self._schedule_retry()
            return []

        # Cleared for any answer, usable or not.
        self.state.polling.loading_short = False
        if not result.ok:
            logger.error(f"Discarding short-poll response: {result.error}")
            return []

        added = self.state.store.merge(result.products)
        if added:
            logger.info(f"Received {len(added)} new product(s): {[p.code for p in added]}")
        return added
