"""HTTP client for the product service.

Three operations are consumed:
- GET  /poll/long   -> {"cantidad": n}, or an empty body when n would be 0
- GET  /poll/short  -> JSON array of products, or 204 when nothing is new
- POST /insert      -> echoed product, or a plain-text acknowledgement
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .exceptions import ServiceUnavailableError
from .models import LongPollResponse, Product, ShortPollResult

logger = logging.getLogger(__name__)


class ProductServiceClient:
    """Async client for the product service.

    No request timeout is applied by default: a long poll is expected to
    hang until the service has something to say.
    """

    LONG_POLL_PATH = "/poll/long"
    SHORT_POLL_PATH = "/poll/short"
    INSERT_PATH = "/insert"

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def _request(self, operation: str, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ServiceUnavailableError(
                operation,
                f"HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ServiceUnavailableError(operation, str(e) or type(e).__name__) from e
        return response

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        if not response.content.strip():
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None

    async def long_poll(self) -> int:
        """Wait for the next discount notification and return its count.

        An empty or unrecognised body counts as 0.

        Raises:
            ServiceUnavailableError: on transport failure or error status.
        """
        response = await self._request("long poll", "GET", self.LONG_POLL_PATH)
        data = self._json_or_none(response)
        if not isinstance(data, dict):
            return 0
        try:
            return LongPollResponse.model_validate(data).cantidad
        except ValidationError:
            logger.warning(f"Ignoring malformed long-poll body: {data!r}")
            return 0

    async def short_poll(self) -> ShortPollResult:
        """Fetch products published since the previous short poll.

        Raises:
            ServiceUnavailableError: on transport failure or error status.
        """
        response = await self._request("short poll", "GET", self.SHORT_POLL_PATH)
        if response.status_code != httpx.codes.OK:
            # 204 "no new products"
            return ShortPollResult.success([])
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return ShortPollResult.invalid("response body is not JSON")
        return ShortPollResult.from_json(data)

    async def insert(self, product: Product) -> Optional[Product]:
        """Submit a new product.

        Returns the product echoed by the service, or None when it only
        acknowledges the insertion.

        Raises:
            ServiceUnavailableError: on transport failure or error status.
        """
        response = await self._request(
            "insert", "POST", self.INSERT_PATH, json=product.to_wire()
        )
        data = self._json_or_none(response)
        if not isinstance(data, dict):
            return None
        try:
            return Product.model_validate(data)
        except ValidationError:
            return None

    async def close(self) -> None:
        await self._client.aclose()
