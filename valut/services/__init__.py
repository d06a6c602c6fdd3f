"""Service layer modules."""

from .rate_store import SqlRateStore
from .reconciler import ReconcileSummary, UpsertOutcome, reconcile
from .refresh import PassSummary, RateRefresher, trailing_window
from .scheduler import (
    RefreshLoop,
    RetryPolicy,
    SchedulerState,
    build_refresh_loop,
    init_scheduler,
    next_backoff,
    shutdown_scheduler,
)


def init_refresher(app) -> RateRefresher:
    """Build the feed client, store and refresher for the Flask app."""

    from valut.feed import CbrFeedClient

    source = app.extensions.get("feed_source")
    if source is None:
        source = CbrFeedClient.from_config(app.config)
        app.extensions["feed_source"] = source

    refresher = RateRefresher.from_config(app.config, source, SqlRateStore())
    app.extensions["rate_refresher"] = refresher
    return refresher
