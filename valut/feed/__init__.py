"""Feed sources and parsing for the CBR daily rates document."""

from .base import FeedSource
from .cbr_client import CbrFeedClient
from .http_client import HTTPClient, HTTPClientConfig
from .parser import (
    FeedSnapshot,
    normalize_decimal_string,
    parse_decimal_string,
    parse_feed,
    parse_feed_date,
    parse_rates,
)

__all__ = [
    "CbrFeedClient",
    "FeedSnapshot",
    "FeedSource",
    "HTTPClient",
    "HTTPClientConfig",
    "normalize_decimal_string",
    "parse_decimal_string",
    "parse_feed",
    "parse_feed_date",
    "parse_rates",
]
