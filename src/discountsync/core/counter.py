"""Persisted running total of discounted products."""

from __future__ import annotations

import json
import logging

from ..storage import COUNTER_KEY, KeyValueStorage

logger = logging.getLogger(__name__)


class CounterAccumulator:
    """Non-negative counter that only grows and is persisted on every increment."""

    def __init__(self, storage: KeyValueStorage, value: int = 0):
        self._storage = storage
        self._value = max(0, value)

    @property
    def value(self) -> int:
        return self._value

    @classmethod
    def restore(cls, storage: KeyValueStorage) -> "CounterAccumulator":
        """Load the persisted total, defaulting to 0 if absent or invalid."""
        raw = storage.get(COUNTER_KEY)
        value = 0
        if raw is not None:
            try:
                decoded = json.loads(raw)
            except json.JSONDecodeError:
                decoded = None
            if isinstance(decoded, int) and not isinstance(decoded, bool) and decoded >= 0:
                value = decoded
            else:
                logger.warning(f"Ignoring persisted counter {raw!r}")
        return cls(storage, value)

    def add(self, count: int) -> int:
        """Add ``count`` to the total and persist it. Non-positive counts are ignored.

        Read, add and persist happen in one synchronous step. The in-memory
        total is authoritative: if persisting fails the increment is kept and
        the next successful write stores the full total.
        """
        if count <= 0:
            return self._value
        self._value = self._value + count
        try:
            self._storage.set(COUNTER_KEY, json.dumps(self._value))
        except Exception as e:
            logger.exception(f"Failed to persist discount counter {self._value}: {e}")
        logger.info(f"Discount counter +{count} -> {self._value}")
        return self._value
