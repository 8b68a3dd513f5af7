"""Submission of new products."""

from __future__ import annotations

import logging

from .client import ProductServiceClient
from .core.store import ProductStore
from .exceptions import PriceValidationError, ServiceUnavailableError
from .models import InsertionResult, ProductForm
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)


class InsertionGateway:
    """Validates a product form, submits it and records it locally.

    On success the product is prepended to the store, the whole collection
    is persisted and the form is reset. On failure nothing local changes and
    the form keeps its values so the same input can be resubmitted.
    """

    def __init__(
        self,
        client: ProductServiceClient,
        store: ProductStore,
        storage: KeyValueStorage,
    ):
        self.client = client
        self.store = store
        self.storage = storage

    async def submit(self, form: ProductForm) -> InsertionResult:
        try:
            product = form.to_product()
        except PriceValidationError as e:
            logger.info(f"Rejected product {form.code!r}: {e}")
            return InsertionResult(
                ok=False,
                error="Please enter a valid price.",
                validation_failed=True,
            )

        try:
            echoed = await self.client.insert(product)
        except ServiceUnavailableError as e:
            logger.error(f"Error inserting product {product.code!r}: {e}")
            return InsertionResult(ok=False, product=product, error=str(e))

        stored = echoed or product
        if not self.store.prepend(stored):
            logger.info(f"Product {stored.code!r} already listed, keeping first entry")
        try:
            self.store.snapshot(self.storage)
        except Exception as e:
            logger.exception(f"Failed to persist products after inserting {stored.code!r}: {e}")
        form.reset()
        logger.info(f"Inserted product {stored.code!r}")
        return InsertionResult(ok=True, product=stored)
