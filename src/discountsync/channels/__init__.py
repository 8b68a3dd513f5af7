"""Polling channels: long poll for the counter, short poll for products."""

from .long_poll import LongPollChannel
from .short_poll import ShortPollChannel

__all__ = ["LongPollChannel", "ShortPollChannel"]
