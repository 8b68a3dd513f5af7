"""Exceptions raised by discountsync."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for discountsync errors."""


class ServiceUnavailableError(SyncError):
    """The product service could not be reached or answered with an error status."""

    def __init__(self, operation: str, reason: str, status_code: int | None = None):
        self.operation = operation
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{operation} failed: {reason}")


class PriceValidationError(SyncError, ValueError):
    """A price string could not be parsed as a number."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Invalid price: {raw!r}")
