"""
SyncEngine - keeps the local product view in step with the product service.

Owns:
- the shared SyncState (product store, discount counter, polling flags)
- the long-poll and short-poll channels and their scheduler
- the insertion gateway
- the shutdown hook that clears the persisted product list

Usage:
    async with SyncEngine.from_config(get_config()) as engine:
        engine.pause()
        engine.resume()
        await engine.insert(ProductForm(name="Tea", price="3.5", code="T1"))
"""

from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .channels import LongPollChannel, ShortPollChannel
from .client import ProductServiceClient
from .config import SyncConfig
from .core import CounterAccumulator, PollingController, ProductStore, SyncState
from .gateway import InsertionGateway
from .models import InsertionResult, ProductForm
from .storage import KeyValueStorage, MemoryStorage, open_storage

logger = logging.getLogger(__name__)


class SyncEngine:
    """Dual-channel synchronization engine.

    State is restored from storage on construction, so the persisted counter
    is visible before any poll completes.
    """

    def __init__(
        self,
        client: ProductServiceClient,
        storage: Optional[KeyValueStorage] = None,
        config: Optional[SyncConfig] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.config = config or SyncConfig()
        self.client = client
        self.storage = storage if storage is not None else MemoryStorage()
        self.scheduler = scheduler or AsyncIOScheduler()

        self.state = SyncState(
            store=ProductStore.restore(self.storage),
            counter=CounterAccumulator.restore(self.storage),
        )
        self.controller = PollingController(self.state.polling)

        timings = self.config.polling
        self.long_poll = LongPollChannel(
            client,
            self.state,
            self.controller,
            retry_delay=timings.long_poll_retry_delay,
        )
        self.short_poll = ShortPollChannel(
            client,
            self.state,
            self.controller,
            self.scheduler,
            interval=timings.short_poll_interval,
            retry_delay=timings.short_poll_retry_delay,
        )
        self.gateway = InsertionGateway(client, self.state.store, self.storage)
        self.controller.on_resume(self._on_resume)

        self._started = False

    @classmethod
    def from_config(cls, config: SyncConfig) -> "SyncEngine":
        """Build an engine with an HTTP client and storage taken from config."""
        client = ProductServiceClient(config.base_url, timeout=config.http_timeout)
        return cls(client, storage=open_storage(config.storage_path), config=config)

    # Read-only views

    @property
    def counter(self) -> int:
        return self.state.counter.value

    @property
    def products(self):
        return self.state.store.products

    @property
    def active(self) -> bool:
        return self.controller.is_active

    # Lifecycle

    def start(self) -> None:
        """Start both channels. Must be called from a running event loop."""
        if self._started:
            return
        self._started = True
        self.short_poll.start()
        if not self.scheduler.running:
            self.scheduler.start()
        self.long_poll.start()
        logger.info(
            f"Engine started against {self.client.base_url} "
            f"(counter={self.counter}, products={len(self.products)})"
        )

    def pause(self) -> None:
        self.controller.pause()

    def resume(self) -> None:
        self.controller.resume()

    def _on_resume(self) -> None:
        if self._started:
            self.short_poll.trigger_now()

    async def insert(self, form: ProductForm) -> InsertionResult:
        return await self.gateway.submit(form)

    async def shutdown(self) -> None:
        """Session termination hook.

        Cancels every pending timer of both channels, removes the persisted
        product list (the counter is kept) and closes the client.
        """
        if self._started:
            self.short_poll.stop()
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            await self.long_poll.stop()
            self._started = False
        try:
            ProductStore.clear_snapshot(self.storage)
        finally:
            await self.client.close()
        logger.info("Engine stopped")

    async def __aenter__(self) -> "SyncEngine":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()
