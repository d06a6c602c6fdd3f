"""Error taxonomy for a rate refresh pass."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional


class RefreshError(Exception):
    """Base class for every failure that can abort a refresh pass."""


class FeedError(RefreshError):
    """Raised when the feed document cannot be downloaded."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FeedStatusError(FeedError):
    """The feed answered with a non-success HTTP status."""


class FeedTransportError(FeedError):
    """The request never produced a response (DNS, connect, timeout, ...)."""


class FeedParseError(RefreshError):
    """The feed document is malformed or contains an unparseable rate."""


class ReconcileError(RefreshError):
    """Raised when a fetched rate map cannot be reconciled for a currency."""

    def __init__(self, message: str, *, currency: str, day: date) -> None:
        super().__init__(message)
        self.currency = currency
        self.day = day


class MissingRateError(ReconcileError):
    """A tracked currency is absent from the fetched rate map."""

    def __init__(self, currency: str, day: date) -> None:
        super().__init__(
            f"There is no rate for {currency} at {day.isoformat()}",
            currency=currency,
            day=day,
        )


class ZeroRateError(ReconcileError):
    """The source rate is zero, so the reverse rate is undefined."""

    def __init__(self, currency: str, day: date) -> None:
        super().__init__(
            f"Cannot compute reverse rate for {currency} at {day.isoformat()}: division by zero",
            currency=currency,
            day=day,
        )


class UnrepresentableRateError(ReconcileError):
    """A rate leg is zero, negative or too large once rounded to the stored scale."""

    def __init__(self, currency: str, day: date, value: Decimal) -> None:
        super().__init__(
            f"Rate {value} for {currency} at {day.isoformat()} does not fit the stored precision",
            currency=currency,
            day=day,
        )
        self.value = value


class PassError(RefreshError):
    """Single error surfaced to the scheduler when a pass aborts."""

    def __init__(
        self,
        message: str,
        *,
        day: Optional[date] = None,
        currency: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.day = day
        self.currency = currency
