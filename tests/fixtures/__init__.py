"""Test fixture helpers."""

from __future__ import annotations

from pathlib import Path

_FIXTURE_ROOT = Path(__file__).parent


def load_text(name: str) -> str:
    """Load a text fixture (feed documents) by filename."""

    return (_FIXTURE_ROOT / name).read_text(encoding="utf-8")


def stored_rows(session) -> dict:
    """Reload every exchange rate row keyed by (from, to, iso date)."""

    from valut.models import ExchangeRate

    session.expire_all()
    return {
        (row.from_currency, row.to_currency, row.date.isoformat()): row
        for row in session.query(ExchangeRate).all()
    }


def feed_document(rates: dict[str, str]) -> str:
    """Build a minimal ``ValCurs`` document from ``{code: VunitRate}``."""

    valutes = "".join(
        f"<Valute><CharCode>{code}</CharCode><VunitRate>{rate}</VunitRate></Valute>"
        for code, rate in rates.items()
    )
    return f"<ValCurs>{valutes}</ValCurs>"


class FakeSource:
    """Feed source serving canned documents or errors per date."""

    def __init__(self, documents=None, default=None):
        self.documents = documents or {}
        self.default = default
        self.calls = []

    def fetch(self, day):
        self.calls.append(day)
        result = self.documents.get(day, self.default)
        if isinstance(result, Exception):
            raise result
        return result
