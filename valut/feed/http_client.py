"""Shared single-shot HTTP client used by feed sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests
from requests import Response, Session
from requests.exceptions import RequestException

from valut.errors import FeedStatusError, FeedTransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HTTPClientConfig:
    """Configuration for the shared HTTP client."""

    base_url: str
    timeout: float = 10.0


class HTTPClient:
    """Small HTTP client that classifies failures into feed errors.

    Exactly one request is issued per call.
    """

    def __init__(
        self,
        config: HTTPClientConfig,
        session: Optional[Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()

    def get_text(self, path: str) -> str:
        url = self.build_url(path)
        try:
            response = self._session.get(url, timeout=self._config.timeout)
        except RequestException as exc:
            logger.warning("HTTP request to %s failed: %s", url, exc)
            raise FeedTransportError(f"Failed to fetch {url}: {exc}") from exc

        return self._handle_response(url, response)

    def build_url(self, path: str) -> str:
        base = self._config.base_url.rstrip("/")
        suffix = path.lstrip("/")
        return f"{base}/{suffix}"

    @staticmethod
    def _handle_response(url: str, response: Response) -> str:
        status = response.status_code
        if not 200 <= status < 300:
            raise FeedStatusError(
                f"Can't download {url}: status {status}",
                status_code=status,
            )
        return response.text
