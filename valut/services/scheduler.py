"""Retry-aware refresh loop and its APScheduler driver."""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, cast

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Flask

from valut.errors import PassError
from valut.logging import refresh_log_extra
from valut.utils.dates import utc_now

logger = logging.getLogger(__name__)

SCHEDULER_EXT_KEY = "apscheduler"
REFRESH_LOOP_KEY = "refresh_loop"

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2


@dataclass(frozen=True)
class RetryPolicy:
    """Timing knobs of the refresh loop."""

    interval_seconds: int = 20 * 60
    retry_floor_seconds: int = 5
    max_consecutive_failures: int = 10

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> RetryPolicy:
        return cls(
            interval_seconds=int(config.get("REFRESH_INTERVAL_SECONDS", 20 * 60)),
            retry_floor_seconds=int(config.get("RETRY_DELAY_SECONDS", 5)),
            max_consecutive_failures=int(config.get("MAX_CONSECUTIVE_FAILURES", 10)),
        )


@dataclass(frozen=True)
class SchedulerState:
    """Snapshot of the loop's bookkeeping; ``None`` timestamps mean "never"."""

    last_success: Optional[datetime] = None
    last_attempt: Optional[datetime] = None
    consecutive_failures: int = 0
    backoff_seconds: int = 0


def next_backoff(previous: int, policy: RetryPolicy = RetryPolicy()) -> int:
    """Grow the retry delay: the floor first, then by the golden ratio."""

    if previous <= 0:
        return policy.retry_floor_seconds
    return round(previous * GOLDEN_RATIO)


def is_due(state: SchedulerState, now: datetime, policy: RetryPolicy = RetryPolicy()) -> bool:
    last_success = state.last_success
    if last_success is None:
        wants_run = True
    else:
        wants_run = (
            now >= last_success + timedelta(seconds=policy.interval_seconds)
            or now.date() != last_success.date()
            or now.hour != last_success.hour
        )
    if not wants_run:
        return False

    if state.last_attempt is None:
        return True
    return now >= state.last_attempt + timedelta(seconds=state.backoff_seconds)


def record_attempt(state: SchedulerState, now: datetime) -> SchedulerState:
    return replace(state, last_attempt=now)


def record_success(state: SchedulerState, now: datetime) -> SchedulerState:
    return replace(
        state,
        last_success=now,
        last_attempt=None,
        consecutive_failures=0,
        backoff_seconds=0,
    )


def record_failure(state: SchedulerState, policy: RetryPolicy = RetryPolicy()) -> SchedulerState:
    return replace(
        state,
        consecutive_failures=state.consecutive_failures + 1,
        backoff_seconds=next_backoff(state.backoff_seconds, policy),
    )


def is_exhausted(state: SchedulerState, policy: RetryPolicy = RetryPolicy()) -> bool:
    return state.consecutive_failures > policy.max_consecutive_failures


class RefreshLoop:
    """Decide on every tick whether to run a pass, and track retries.

    ``run_pass`` receives the current UTC date and signals failure with
    :class:`PassError`. Any other exception counts as a failed pass too.
    """

    def __init__(
        self,
        run_pass: Callable[[date], Any],
        policy: RetryPolicy = RetryPolicy(),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._run_pass = run_pass
        self._policy = policy
        self._clock = clock
        self._state = SchedulerState()
        self._lock = threading.Lock()
        self._finished = threading.Event()
        self._stopped = threading.Event()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def finished(self) -> bool:
        """True once the loop has given up or been stopped."""

        return self._finished.is_set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    @property
    def exhausted(self) -> bool:
        return is_exhausted(self._state, self._policy)

    def stop(self) -> None:
        """Cancel the loop; any pending backoff is abandoned."""

        self._stopped.set()
        self._finished.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._finished.wait(timeout)

    def tick(self, now: Optional[datetime] = None) -> SchedulerState:
        """Run a pass if one is due, then return the resulting state."""

        if self.finished:
            return self._state

        explicit_now = now is not None
        with self._lock:
            now = now if explicit_now else self._clock()
            if not is_due(self._state, now, self._policy):
                return self._state

            self._state = record_attempt(self._state, now)
            try:
                self._run_pass(now.date())
            except PassError as exc:
                self._state = record_failure(self._state, self._policy)
                self._log_failure(exc)
            except Exception as exc:
                self._state = record_failure(self._state, self._policy)
                logger.exception(
                    "Unexpected error during refresh pass",
                    extra=refresh_log_extra(
                        event="refresh.pass", status="error", day=now.date(), error=str(exc)
                    ),
                )
                self._log_retry()
            else:
                finished_at = now if explicit_now else self._clock()
                self._state = record_success(self._state, finished_at)

            if is_exhausted(self._state, self._policy):
                logger.error(
                    "Max retries exceeded after %s consecutive failures; refresh loop stopped",
                    self._state.consecutive_failures,
                    extra=refresh_log_extra(event="refresh.exhausted", status="stopped"),
                )
                self._finished.set()

            return self._state

    def _log_failure(self, exc: PassError) -> None:
        logger.error(
            "Error executing refresh pass: %s",
            exc,
            extra=refresh_log_extra(
                event="refresh.pass",
                status="error",
                day=exc.day,
                currency=exc.currency,
                error=str(exc.__cause__ or exc),
            ),
        )
        self._log_retry()

    def _log_retry(self) -> None:
        logger.warning(
            "Retry %s/%s scheduled in %ss",
            self._state.consecutive_failures,
            self._policy.max_consecutive_failures,
            self._state.backoff_seconds,
            extra=refresh_log_extra(event="refresh.retry_scheduled", status="backoff"),
        )


def build_refresh_loop(app: Flask) -> RefreshLoop:
    """Create the loop bound to the app's refresher and store it on the app."""

    from valut.services.refresh import RateRefresher  # Local import to avoid circular

    refresher = cast(RateRefresher, app.extensions["rate_refresher"])
    loop = RefreshLoop(refresher.run_pass, RetryPolicy.from_config(app.config))
    app.extensions[REFRESH_LOOP_KEY] = loop
    return loop


def _run_tick(app: Flask, scheduler: BackgroundScheduler) -> None:
    loop = cast(Optional[RefreshLoop], app.extensions.get(REFRESH_LOOP_KEY))
    if loop is None:
        logger.warning("No refresh loop configured; skipping tick.")
        return

    with app.app_context():
        loop.tick()

    if loop.finished and scheduler.running:
        scheduler.shutdown(wait=False)


def init_scheduler(app: Flask) -> BackgroundScheduler | None:
    """Start APScheduler ticking the refresh loop if enabled."""

    if not app.config.get("SCHEDULER_ENABLED", True):
        logger.info("Scheduler disabled via configuration.")
        return None

    if app.extensions.get(SCHEDULER_EXT_KEY):
        return app.extensions[SCHEDULER_EXT_KEY]

    if REFRESH_LOOP_KEY not in app.extensions:
        build_refresh_loop(app)

    tick_seconds = float(app.config.get("SCHEDULER_TICK_SECONDS", 1))
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        _run_tick,
        trigger=IntervalTrigger(seconds=tick_seconds),
        args=[app, scheduler],
        id="refresh_tick",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=utc_now(),
    )
    scheduler.start()

    app.extensions[SCHEDULER_EXT_KEY] = scheduler
    logger.info("Refresh loop started with a %ss tick", tick_seconds)
    return scheduler


def shutdown_scheduler(app: Flask) -> None:
    sched = app.extensions.get(SCHEDULER_EXT_KEY)
    if sched and getattr(sched, "running", False):
        sched.shutdown(wait=False)
