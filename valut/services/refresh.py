"""One refresh pass: fetch, parse and reconcile every date in the trailing window."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from time import perf_counter
from typing import Any, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from valut.errors import PassError, ReconcileError, RefreshError
from valut.feed.base import FeedSource
from valut.feed.parser import parse_feed
from valut.logging import refresh_log_extra
from valut.services.reconciler import ReconcileSummary, RateStore, reconcile
from valut.utils.dates import descending_dates, utc_now

logger = logging.getLogger(__name__)


def trailing_window(today: date, days_back: int = 6, days_ahead: int = 1) -> list[date]:
    """Dates from ``today + days_ahead`` down to ``today - days_back``, newest first."""

    return descending_dates(today - timedelta(days=days_back), today + timedelta(days=days_ahead))


@dataclass
class PassSummary:
    dates: list[ReconcileSummary] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(item.inserted for item in self.dates)

    @property
    def updated(self) -> int:
        return sum(item.updated for item in self.dates)


class RateRefresher:
    """Run refresh passes against a feed source and a rate store."""

    def __init__(
        self,
        source: FeedSource,
        store: RateStore,
        tracked: Sequence[str],
        *,
        base: str = "RUB",
        strict_parsing: bool = False,
        zero_rate_policy: str = "abort",
        days_back: int = 6,
        days_ahead: int = 1,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._source = source
        self._store = store
        self._tracked = list(tracked)
        self._base = base
        self._strict_parsing = strict_parsing
        self._zero_rate_policy = zero_rate_policy
        self._days_back = days_back
        self._days_ahead = days_ahead
        self._clock = clock

    @classmethod
    def from_config(
        cls, config: Mapping[str, Any], source: FeedSource, store: RateStore
    ) -> RateRefresher:
        return cls(
            source,
            store,
            config.get("TRACKED_CURRENCIES", ["USD", "EUR"]),
            base=str(config.get("BASE_CURRENCY", "RUB")),
            strict_parsing=bool(config.get("STRICT_PARSING", False)),
            zero_rate_policy=str(config.get("ZERO_RATE_POLICY", "abort")),
            days_back=int(config.get("WINDOW_DAYS_BACK", 6)),
            days_ahead=int(config.get("WINDOW_DAYS_AHEAD", 1)),
        )

    @property
    def tracked(self) -> list[str]:
        return list(self._tracked)

    def run_pass(self, today: date) -> PassSummary:
        """Reconcile the whole trailing window around ``today``.

        Stops at the first failing date.

        Raises:
            PassError: Wrapping whatever aborted the pass, with the failing
                date and currency when known.
        """

        start = perf_counter()
        summary = PassSummary()
        for day in trailing_window(today, self._days_back, self._days_ahead):
            summary.dates.append(self.refresh_date(day))

        logger.info(
            "Refresh pass completed: %s inserted, %s updated",
            summary.inserted,
            summary.updated,
            extra=refresh_log_extra(
                event="refresh.pass",
                status="success",
                day=today,
                duration_ms=(perf_counter() - start) * 1000,
            ),
        )
        return summary

    def refresh_date(self, day: date) -> ReconcileSummary:
        """Fetch, parse and reconcile a single date.

        Raises:
            PassError: If any step fails.
        """

        try:
            document = self._source.fetch(day)
            snapshot = parse_feed(document, strict=self._strict_parsing)
            self._check_feed_date(snapshot.published, day)
            return reconcile(
                day,
                snapshot.rates,
                self._tracked,
                self._store,
                base=self._base,
                zero_rate_policy=self._zero_rate_policy,
                clock=self._clock,
            )
        except ReconcileError as exc:
            raise PassError(str(exc), day=exc.day, currency=exc.currency) from exc
        except (RefreshError, SQLAlchemyError, ArithmeticError) as exc:
            raise PassError(f"Refresh failed at {day.isoformat()}: {exc}", day=day) from exc

    @staticmethod
    def _check_feed_date(published: Optional[date], requested: date) -> None:
        if published is not None and published != requested:
            logger.debug(
                "Feed for %s is the %s publication",
                requested.isoformat(),
                published.isoformat(),
            )
