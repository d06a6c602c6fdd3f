"""Client for the Central Bank of Russia daily rates feed."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from time import perf_counter
from typing import Any

from valut.errors import FeedError
from valut.logging import refresh_log_extra
from valut.utils.dates import format_feed_date

from .base import FeedSource
from .http_client import HTTPClient, HTTPClientConfig

logger = logging.getLogger(__name__)

DAILY_FEED_PATH = "XML_daily.asp"


class CbrFeedClient(FeedSource):
    """Fetch the ``XML_daily.asp`` document for a given date."""

    def __init__(self, client: HTTPClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> CbrFeedClient:
        http_config = HTTPClientConfig(
            base_url=str(config.get("CBR_FEED_BASE_URL", "https://cbr.ru/scripts")),
            timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 10)),
        )
        return cls(HTTPClient(http_config))

    def build_path(self, day: date) -> str:
        # The feed wants literal slashes in date_req, so the query is not re-encoded.
        return f"{DAILY_FEED_PATH}?date_req={format_feed_date(day)}"

    def build_url(self, day: date) -> str:
        return self._client.build_url(self.build_path(day))

    def fetch(self, day: date) -> str:
        start = perf_counter()
        try:
            text = self._client.get_text(self.build_path(day))
        except FeedError as exc:
            logger.warning(
                "Feed fetch failed for %s: %s",
                day.isoformat(),
                exc,
                extra=refresh_log_extra(
                    event="feed.fetch",
                    status="error",
                    day=day,
                    duration_ms=(perf_counter() - start) * 1000,
                    error=str(exc),
                ),
            )
            raise

        logger.debug(
            "Feed fetched for %s",
            day.isoformat(),
            extra=refresh_log_extra(
                event="feed.fetch",
                status="success",
                day=day,
                duration_ms=(perf_counter() - start) * 1000,
            ),
        )
        return text
