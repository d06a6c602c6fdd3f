"""CBR daily feed client tests."""

from __future__ import annotations

from datetime import date

import pytest
import responses
from requests.exceptions import ConnectionError

from valut.errors import FeedStatusError, FeedTransportError
from valut.feed.cbr_client import CbrFeedClient
from tests.fixtures import load_text

pytestmark = pytest.mark.feed

FEED_URL = "https://cbr.ru/scripts/XML_daily.asp"


@pytest.fixture()
def feed_client() -> CbrFeedClient:
    return CbrFeedClient.from_config(
        {"CBR_FEED_BASE_URL": "https://cbr.ru/scripts", "REQUEST_TIMEOUT_SECONDS": 2}
    )


def test_build_url_formats_date_as_day_month_year(feed_client: CbrFeedClient) -> None:
    assert (
        feed_client.build_url(date(2025, 1, 9))
        == "https://cbr.ru/scripts/XML_daily.asp?date_req=09/01/2025"
    )


@responses.activate
def test_fetch_returns_document_text(feed_client: CbrFeedClient) -> None:
    document = load_text("xml_daily_2025_01_10.xml")
    responses.add(
        responses.GET,
        f"{FEED_URL}?date_req=10/01/2025",
        body=document,
        status=200,
        content_type="application/xml; charset=utf-8",
    )

    assert feed_client.fetch(date(2025, 1, 10)) == document
    assert len(responses.calls) == 1
    assert responses.calls[0].request.url.endswith("date_req=10/01/2025")


@responses.activate
def test_fetch_raises_bad_status_without_retrying(feed_client: CbrFeedClient) -> None:
    responses.add(responses.GET, f"{FEED_URL}?date_req=10/01/2025", status=503)

    with pytest.raises(FeedStatusError) as exc_info:
        feed_client.fetch(date(2025, 1, 10))

    assert exc_info.value.status_code == 503
    assert len(responses.calls) == 1


@responses.activate
def test_fetch_wraps_transport_errors(feed_client: CbrFeedClient) -> None:
    responses.add(
        responses.GET,
        f"{FEED_URL}?date_req=10/01/2025",
        body=ConnectionError("connection reset"),
    )

    with pytest.raises(FeedTransportError):
        feed_client.fetch(date(2025, 1, 10))
