"""Exceptions raised by the indicator engine and the balance service."""

from __future__ import annotations


class OKXTraderError(Exception):
    """Base class for all project specific errors."""


class InsufficientDataError(OKXTraderError):
    """Fewer prices are available than the rolling window needs.

    Callers that can legitimately lack history (new listings, fresh
    intervals) check the length first and treat it as an empty result.
    """

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"need at least {required} prices to compute bands, got {available}"
        )
        self.required = required
        self.available = available


class ChannelSubscriptionError(OKXTraderError):
    """Subscribing to the balance push channel failed."""

    def __init__(self, topic: str, reason: str) -> None:
        super().__init__(f"subscription to {topic!r} failed: {reason}")
        self.topic = topic
        self.reason = reason


class PullCycleError(OKXTraderError):
    """One scheduled balance refresh failed.

    The authoritative snapshot is left untouched and the schedule continues.
    """


__all__ = [
    "OKXTraderError",
    "InsufficientDataError",
    "ChannelSubscriptionError",
    "PullCycleError",
]
