"""Abstract interface for daily rate feed sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date


class FeedSource(ABC):
    """Defines the interface every feed source must implement."""

    @abstractmethod
    def fetch(self, day: date) -> str:
        """Return the raw feed document published for ``day``.

        Implementations issue a single request and never retry; retrying is
        the scheduler's job.
        """
