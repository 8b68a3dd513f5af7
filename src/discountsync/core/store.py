"""Ordered, deduplicated product collection."""

from __future__ import annotations

import json
import logging
from typing import Callable, Iterable, List, Set, Tuple

from pydantic import ValidationError

from ..models import Product, parse_product_list
from ..storage import PRODUCTS_KEY, KeyValueStorage

logger = logging.getLogger(__name__)

Products = Tuple[Product, ...]


def _unseen(existing: Iterable[Product], incoming: Iterable[Product]) -> List[Product]:
    """Incoming products whose code is not in ``existing`` (nor earlier in the batch)."""
    seen: Set[str] = {p.code for p in existing}
    fresh: List[Product] = []
    for product in incoming:
        if product.code in seen:
            continue
        seen.add(product.code)
        fresh.append(product)
    return fresh


class ProductStore:
    """Products in display order, unique by ``code``.

    Every mutation goes through ``update`` as a pure ``previous -> next``
    function applied in one synchronous step, so writers scheduled from
    different tasks never overwrite each other.
    """

    def __init__(self, products: Iterable[Product] = ()):
        self._products: Products = tuple(_unseen((), products))

    @property
    def products(self) -> Products:
        return self._products

    @property
    def codes(self) -> Set[str]:
        return {p.code for p in self._products}

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, code: object) -> bool:
        return any(p.code == code for p in self._products)

    def update(self, fn: Callable[[Products], Products]) -> Products:
        """Replace the collection with ``fn(current)`` and return the result."""
        self._products = tuple(fn(self._products))
        return self._products

    def merge(self, incoming: Iterable[Product]) -> List[Product]:
        """Append products not seen before. Returns the ones actually added."""
        added: List[Product] = []

        def apply(current: Products) -> Products:
            added.extend(_unseen(current, incoming))
            return current + tuple(added)

        self.update(apply)
        return added

    def prepend(self, product: Product) -> bool:
        """Insert ``product`` at the front.

        A product whose code is already present leaves the store unchanged
        (the first-seen entry wins) and returns False.
        """
        inserted = False

        def apply(current: Products) -> Products:
            nonlocal inserted
            if any(p.code == product.code for p in current):
                return current
            inserted = True
            return (product,) + current

        self.update(apply)
        return inserted

    # Persistence

    @classmethod
    def restore(cls, storage: KeyValueStorage) -> "ProductStore":
        """Load the persisted collection; anything invalid restores empty."""
        raw = storage.get(PRODUCTS_KEY)
        if raw is None:
            return cls()
        try:
            products = parse_product_list(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Discarding persisted products: {e}")
            return cls()
        logger.info(f"Restored {len(products)} persisted products")
        return cls(products)

    def snapshot(self, storage: KeyValueStorage) -> None:
        """Persist the whole collection."""
        storage.set(
            PRODUCTS_KEY, json.dumps([p.to_wire() for p in self._products])
        )

    @staticmethod
    def clear_snapshot(storage: KeyValueStorage) -> None:
        storage.remove(PRODUCTS_KEY)
