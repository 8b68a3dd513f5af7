"""Shared polling state and the controller that pauses and resumes it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List

from .counter import CounterAccumulator
from .store import ProductStore

logger = logging.getLogger(__name__)


@dataclass
class PollingState:
    """State read by both channels at every scheduling decision."""

    active: bool = True
    # Nothing has been received yet, so both channels start "loading".
    loading_long: bool = True
    loading_short: bool = True


@dataclass
class SyncState:
    """Everything the channels share, passed to each of them by reference."""

    store: ProductStore
    counter: CounterAccumulator
    polling: PollingState = field(default_factory=PollingState)


class PollingController:
    """Owns ``PollingState.active``.

    Pausing only gates future scheduling: a request already in flight still
    completes and its result is still applied.
    """

    def __init__(self, state: PollingState):
        self.state = state
        self._active_event = asyncio.Event()
        if state.active:
            self._active_event.set()
        self._resume_listeners: List[Callable[[], None]] = []

    @property
    def is_active(self) -> bool:
        return self.state.active

    def pause(self) -> None:
        if not self.state.active:
            return
        self.state.active = False
        self._active_event.clear()
        logger.info("Polling paused")

    def resume(self) -> None:
        if self.state.active:
            return
        self.state.active = True
        self._active_event.set()
        logger.info("Polling resumed")
        for listener in list(self._resume_listeners):
            listener()

    def on_resume(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` every time polling goes from paused to active."""
        self._resume_listeners.append(listener)

    async def wait_active(self) -> None:
        """Return once polling is active (immediately if it already is)."""
        await self._active_event.wait()
