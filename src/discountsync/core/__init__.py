"""
discountsync core - shared state of the engine.

Provides:
- ProductStore: ordered, deduplicated product collection
- CounterAccumulator: persisted discount counter
- PollingState, SyncState, PollingController: pause/resume gating
"""

from .counter import CounterAccumulator
from .state import PollingController, PollingState, SyncState
from .store import ProductStore

__all__ = [
    "CounterAccumulator",
    "PollingController",
    "PollingState",
    "ProductStore",
    "SyncState",
]
