"""Reconcile a fetched rate map against the stored exchange rates."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from typing import Protocol

from valut.errors import MissingRateError, UnrepresentableRateError, ZeroRateError
from valut.logging import refresh_log_extra
from valut.models import RATE_PRECISION, RATE_SCALE
from valut.utils.dates import utc_now

logger = logging.getLogger(__name__)

RATE_QUANTUM = Decimal(1).scaleb(-RATE_SCALE)
RATE_LIMIT = Decimal(1).scaleb(RATE_PRECISION - RATE_SCALE)

ZERO_RATE_ABORT = "abort"
ZERO_RATE_SKIP = "skip"


class RateStore(Protocol):
    def get(self, from_currency: str, to_currency: str, day: date): ...

    def insert(
        self, from_currency: str, to_currency: str, day: date, rate: Decimal, now: datetime
    ): ...

    def update_rate(self, row_id, rate: Decimal, now: datetime) -> None: ...


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class ReconcileSummary:
    """Per-date counts of what reconciliation did."""

    day: date
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: list[str] | None = None

    def record(self, outcome: UpsertOutcome) -> None:
        if outcome is UpsertOutcome.INSERTED:
            self.inserted += 1
        elif outcome is UpsertOutcome.UPDATED:
            self.updated += 1
        else:
            self.unchanged += 1

    def skip(self, currency: str) -> None:
        if self.skipped is None:
            self.skipped = []
        self.skipped.append(currency)


def quantize_rate(value: Decimal) -> Decimal:
    """Round ``value`` to the scale of the ``rate`` column."""

    return value.quantize(RATE_QUANTUM, rounding=ROUND_HALF_EVEN)


def reverse_rate(rate: Decimal, currency: str, day: date) -> Decimal:
    """Return ``1 / rate`` in exact decimal arithmetic.

    Raises:
        ZeroRateError: If ``rate`` is zero.
    """

    if rate.is_zero():
        raise ZeroRateError(currency, day)
    return Decimal(1) / rate


def storable_rate(value: Decimal, currency: str, day: date) -> Decimal:
    """Quantize ``value`` for the ``rate`` column, which only holds positive values.

    Raises:
        UnrepresentableRateError: If the value rounds to zero, is negative,
            or has too many integer digits.
    """

    if value.copy_abs() >= RATE_LIMIT:
        raise UnrepresentableRateError(currency, day, value)
    quantized = quantize_rate(value)
    if quantized <= 0:
        raise UnrepresentableRateError(currency, day, value)
    return quantized


def reconcile(
    day: date,
    rates: Mapping[str, Decimal],
    tracked: Sequence[str],
    store: RateStore,
    *,
    base: str = "RUB",
    zero_rate_policy: str = ZERO_RATE_ABORT,
    clock: Callable[[], datetime] = utc_now,
) -> ReconcileSummary:
    """Write both legs of every tracked currency for ``day``.

    Currencies are processed in the order given. Each currency's rows are
    committed as soon as they are computed, so an error for a later currency
    leaves earlier ones in place.

    Raises:
        MissingRateError: If a tracked currency is absent from ``rates``.
        ZeroRateError: If a rate is zero and ``zero_rate_policy`` is ``"abort"``.
        UnrepresentableRateError: If either leg does not fit the ``rate``
            column, under the same policy.
    """

    summary = ReconcileSummary(day=day)

    for currency in tracked:
        rate = rates.get(currency)
        if rate is None:
            raise MissingRateError(currency, day)

        if rate.is_zero():
            logger.warning(
                "Rate is zero for %s at %s",
                currency,
                day.isoformat(),
                extra=refresh_log_extra(
                    event="rates.reconcile", status="zero_rate", day=day, currency=currency
                ),
            )

        try:
            reverse = reverse_rate(rate, currency, day)
            forward = storable_rate(rate, currency, day)
            reverse = storable_rate(reverse, currency, day)
        except (ZeroRateError, UnrepresentableRateError) as exc:
            if zero_rate_policy != ZERO_RATE_SKIP:
                raise
            logger.warning(
                "Skipping %s at %s: %s",
                currency,
                day.isoformat(),
                exc,
                extra=refresh_log_extra(
                    event="rates.reconcile", status="skipped", day=day, currency=currency
                ),
            )
            summary.skip(currency)
            continue

        summary.record(_upsert_rate(store, currency, base, day, forward, clock))
        summary.record(_upsert_rate(store, base, currency, day, reverse, clock))

    return summary


def _upsert_rate(
    store: RateStore,
    from_currency: str,
    to_currency: str,
    day: date,
    rate: Decimal,
    clock: Callable[[], datetime],
) -> UpsertOutcome:
    value = quantize_rate(rate)
    existing = store.get(from_currency, to_currency, day)

    if existing is None:
        store.insert(from_currency, to_currency, day, value, clock())
        logger.info(
            "Exchange rate added: %s -> %s at %s = %s",
            from_currency,
            to_currency,
            day.isoformat(),
            value,
            extra=refresh_log_extra(event="rates.upsert", status="inserted", day=day),
        )
        return UpsertOutcome.INSERTED

    if quantize_rate(Decimal(existing.rate)) == value:
        return UpsertOutcome.UNCHANGED

    previous = existing.rate
    store.update_rate(existing.id, value, clock())
    logger.info(
        "Exchange rate updated: %s -> %s at %s = %s (was %s)",
        from_currency,
        to_currency,
        day.isoformat(),
        value,
        previous,
        extra=refresh_log_extra(event="rates.upsert", status="updated", day=day),
    )
    return UpsertOutcome.UPDATED
