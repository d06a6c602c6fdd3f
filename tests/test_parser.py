from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from valut.errors import FeedParseError
from valut.feed.parser import (
    normalize_decimal_string,
    parse_decimal_string,
    parse_feed,
    parse_feed_date,
    parse_rates,
)
from tests.fixtures import load_text

pytestmark = pytest.mark.feed


def _document(*entries: tuple[str, str]) -> str:
    valutes = "".join(
        f"<Valute><CharCode>{code}</CharCode><VunitRate>{rate}</VunitRate></Valute>"
        for code, rate in entries
    )
    return f'<ValCurs Date="10.01.2025">{valutes}</ValCurs>'


@pytest.mark.parametrize("raw", ["90,5", "90.5", "1,23E-4", "1,000,5", "", "abc"])
def test_normalize_decimal_string_is_idempotent(raw):
    once = normalize_decimal_string(raw)

    assert normalize_decimal_string(once) == once
    assert "," not in once


def test_parse_decimal_string_handles_scientific_notation():
    assert parse_decimal_string("1.5E2") == Decimal("150")
    assert parse_decimal_string("1.23E-4") == Decimal("0.000123")
    assert parse_decimal_string("2e0") == Decimal("2")
    assert parse_decimal_string("-4.2e+1") == Decimal("-42")


def test_parse_decimal_string_after_comma_normalization():
    assert parse_decimal_string(normalize_decimal_string("3,14")) == Decimal("3.14")


@pytest.mark.parametrize("raw", ["", "abc", "1.2.3", "1E", "E5", "1e2.5", "NaN", "Infinity", "1E999999999"])
def test_parse_decimal_string_rejects_malformed_literals(raw):
    assert parse_decimal_string(raw) is None


def test_parse_rates_reads_unit_rates_from_feed():
    rates = parse_rates(load_text("xml_daily_2025_01_10.xml"))

    assert rates["USD"] == Decimal("90.5")
    assert rates["EUR"] == Decimal("100.25")
    assert rates["CNY"] == Decimal("13.9956")
    assert rates["UZS"] == Decimal("0.00781234")


def test_parse_rates_drops_unparseable_entries_by_default():
    rates = parse_rates(load_text("xml_daily_2025_01_10.xml"))

    assert "PLN" not in rates
    assert set(rates) == {"GBP", "USD", "EUR", "CNY", "UZS"}


def test_parse_rates_strict_mode_rejects_unparseable_entry():
    with pytest.raises(FeedParseError) as exc_info:
        parse_rates(load_text("xml_daily_2025_01_10.xml"), strict=True)

    assert "PLN" in str(exc_info.value)


def test_parse_rates_last_duplicate_wins():
    rates = parse_rates(_document(("USD", "90,1"), ("USD", "91,2")))

    assert rates == {"USD": Decimal("91.2")}


def test_parse_rates_derives_unit_rate_from_value_and_nominal():
    rates = parse_rates(load_text("xml_daily_legacy.xml"))

    assert rates["USD"] == Decimal("74.3242")
    assert rates["CNY"] == Decimal("11.4885")


def test_parse_rates_keeps_zero_rate():
    rates = parse_rates(_document(("USD", "0,0")))

    assert rates["USD"].is_zero()


def test_parse_rates_rejects_malformed_xml():
    with pytest.raises(FeedParseError):
        parse_rates("<ValCurs><Valute>")


def test_parse_rates_rejects_unexpected_root():
    with pytest.raises(FeedParseError):
        parse_rates("<html><body>Service unavailable</body></html>")


def test_parse_feed_date_reads_root_attribute():
    assert parse_feed_date(load_text("xml_daily_2025_01_10.xml")) == date(2025, 1, 10)
    assert parse_feed_date("<ValCurs/>") is None


def test_parse_feed_returns_rates_and_publication_date():
    snapshot = parse_feed(load_text("xml_daily_2025_01_10.xml"))

    assert snapshot.published == date(2025, 1, 10)
    assert snapshot.rates == parse_rates(load_text("xml_daily_2025_01_10.xml"))


def test_parse_feed_without_date_attribute():
    snapshot = parse_feed(_document(("USD", "90,5")).replace(' Date="10.01.2025"', ""))

    assert snapshot.published is None
    assert snapshot.rates == {"USD": Decimal("90.5")}
