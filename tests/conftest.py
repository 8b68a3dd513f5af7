"""Shared fixtures for discountsync tests."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from discountsync.client import ProductServiceClient
from discountsync.core import CounterAccumulator, PollingController, ProductStore, SyncState
from discountsync.models import Product, ShortPollResult
from discountsync.storage import MemoryStorage


def make_product(code: str, name: str = "", price: float = 1.0, discount: bool = False) -> Product:
    return Product(name=name or f"Product {code}", price=price, code=code, discount=discount)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def state(storage):
    return SyncState(store=ProductStore(), counter=CounterAccumulator(storage))


@pytest.fixture
def controller(state):
    return PollingController(state.polling)


@pytest.fixture
def client():
    """ProductServiceClient double with harmless defaults."""
    mock = AsyncMock(spec=ProductServiceClient)
    mock.base_url = "http://service.test"
    mock.long_poll.return_value = 0
    mock.short_poll.return_value = ShortPollResult.success([])
    mock.insert.return_value = None
    return mock


@pytest.fixture
def scheduler():
    return MagicMock()


@pytest.fixture
def wait_until():
    """Yield to the event loop until ``predicate()`` holds or the timeout expires."""

    async def _wait(predicate, timeout: float = 2.0) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                return False
            await asyncio.sleep(0.001)
        return True

    return _wait
