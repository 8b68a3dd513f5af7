"""Data types shared by the store, the channels and the HTTP client.

Products travel over the wire with the product service's field names
(``nombre``, ``precio``, ``codigo``, ``descuento``); inside Python they are
exposed as ``name``, ``price``, ``code`` and ``discount``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .exceptions import PriceValidationError

# Leading numeric prefix, the way a browser's parseFloat reads user input.
_FLOAT_PREFIX = re.compile(
    r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)


class Product(BaseModel):
    """A product as known to the remote service. Identity is ``code``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(alias="nombre")
    price: float = Field(alias="precio")
    code: str = Field(alias="codigo")
    discount: bool = Field(default=False, alias="descuento")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with the service's field names."""
        return self.model_dump(by_alias=True)


_PRODUCT_LIST = TypeAdapter(List[Product])


def parse_product_list(data: Any) -> List[Product]:
    """Validate a decoded JSON value as a list of products.

    Raises:
        ValidationError: if ``data`` is not an array of products.
    """
    return _PRODUCT_LIST.validate_python(data)


def parse_price(raw: str) -> float:
    """Parse a user-entered price.

    Reads the leading numeric part of the string, so ``"12.50"`` gives
    ``12.5``, ``"3.5kg"`` gives ``3.5`` and ``"-Infinity"`` gives ``-inf``.

    Raises:
        PriceValidationError: if the string does not start with a number.
    """
    match = _FLOAT_PREFIX.match(raw or "")
    if not match:
        raise PriceValidationError(raw)
    return float(match.group(1))


class ProductForm(BaseModel):
    """Candidate product as typed by a user; ``price`` is still a string."""

    model_config = ConfigDict(validate_assignment=True)

    name: str = ""
    price: str = ""
    code: str = ""
    discount: bool = False

    def to_product(self) -> Product:
        """Build a Product, parsing the price.

        Raises:
            PriceValidationError: if the price is not a number.
        """
        return Product(
            name=self.name,
            price=parse_price(self.price),
            code=self.code,
            discount=self.discount,
        )

    def reset(self) -> None:
        """Return every field to its empty value."""
        self.name = ""
        self.price = ""
        self.code = ""
        self.discount = False


class LongPollResponse(BaseModel):
    """Body of ``GET /poll/long``."""

    cantidad: int = Field(default=0, ge=0)


@dataclass
class ShortPollResult:
    """Outcome of one short poll: either products or a shape error."""

    ok: bool
    products: List[Product] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def success(cls, products: List[Product]) -> "ShortPollResult":
        return cls(ok=True, products=products)

    @classmethod
    def invalid(cls, error: str) -> "ShortPollResult":
        return cls(ok=False, error=error)

    @classmethod
    def from_json(cls, data: Any) -> "ShortPollResult":
        """Validate a decoded body; non-arrays and bad items become failures."""
        if not isinstance(data, list):
            return cls.invalid(f"expected an array of products, got {type(data).__name__}")
        try:
            return cls.success(parse_product_list(data))
        except ValidationError as e:
            return cls.invalid(f"invalid product in response: {e.error_count()} error(s)")


@dataclass
class InsertionResult:
    """Outcome of an insertion attempt."""

    ok: bool
    product: Optional[Product] = None
    error: Optional[str] = None
    validation_failed: bool = False
