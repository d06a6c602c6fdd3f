"""Parse the CBR ``ValCurs`` XML document into a rate map."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from valut.errors import FeedParseError

logger = logging.getLogger(__name__)

ROOT_TAG = "ValCurs"
ENTRY_TAG = "Valute"
FEED_DATE_ATTR_FORMAT = "%d.%m.%Y"

_TEN = Decimal(10)


@dataclass(frozen=True)
class FeedSnapshot:
    """Rates of one feed document plus the publication date it declares."""

    published: Optional[date]
    rates: Dict[str, Decimal] = field(default_factory=dict)


def normalize_decimal_string(value: str) -> str:
    """Replace the locale decimal comma with a period."""

    return value.replace(",", ".")


def parse_decimal_string(value: str) -> Optional[Decimal]:
    """Parse a plain or scientific-notation decimal literal without going through float.

    Returns ``None`` when the literal cannot be parsed or is not finite.
    """

    text = value.strip()
    if not text:
        return None

    exponent_at = _find_exponent_marker(text)
    try:
        if exponent_at is None:
            result = Decimal(text)
        else:
            mantissa = Decimal(text[:exponent_at])
            exponent = int(text[exponent_at + 1 :])
            power = _TEN ** abs(exponent)
            result = mantissa * power if exponent >= 0 else mantissa / power
    except (ArithmeticError, ValueError):
        return None

    if not result.is_finite():
        return None
    return result


def parse_rates(document: str, *, strict: bool = False) -> Dict[str, Decimal]:
    """Extract ``{char_code: unit_rate}`` from a feed document.

    Unparseable entries are dropped unless ``strict`` is set, in which case
    the first one raises :class:`FeedParseError`. Duplicate codes keep the
    last value seen.
    """

    return _root_rates(_parse_root(document), strict)


def parse_feed(document: str, *, strict: bool = False) -> FeedSnapshot:
    """Parse ``document`` once into its rate map and declared publication date."""

    root = _parse_root(document)
    return FeedSnapshot(published=_root_date(root), rates=_root_rates(root, strict))


def parse_feed_date(document: str) -> Optional[date]:
    """Return the publication date declared on the ``ValCurs`` root, if any."""

    return _root_date(_parse_root(document))


def _root_rates(root: ET.Element, strict: bool) -> Dict[str, Decimal]:
    rates: Dict[str, Decimal] = {}
    for entry in root.iter(ENTRY_TAG):
        code = (entry.findtext("CharCode") or "").strip().upper()
        rate = _entry_unit_rate(entry)

        if not code or rate is None:
            if strict:
                raise FeedParseError(
                    f"Unparseable feed entry {code or '<no CharCode>'}: {_entry_raw_rate(entry)!r}"
                )
            logger.debug("Skipping unparseable feed entry %s", code or "<no CharCode>")
            continue

        if rate.is_zero():
            logger.warning("Feed reports a zero rate for %s", code)

        rates[code] = rate

    return rates


def _root_date(root: ET.Element) -> Optional[date]:
    raw = root.get("Date")
    if not raw:
        return None
    try:
        return datetime.strptime(raw.strip(), FEED_DATE_ATTR_FORMAT).date()
    except ValueError:
        return None


def _parse_root(document: str) -> ET.Element:
    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise FeedParseError(f"Feed document is not well-formed XML: {exc}") from exc

    if root.tag != ROOT_TAG:
        raise FeedParseError(f"Unexpected feed root element <{root.tag}>, expected <{ROOT_TAG}>")
    return root


def _entry_unit_rate(entry: ET.Element) -> Optional[Decimal]:
    unit_rate = entry.findtext("VunitRate")
    if unit_rate is not None:
        return parse_decimal_string(normalize_decimal_string(unit_rate))

    # Older feed revisions only publish Value per Nominal units.
    value_text = entry.findtext("Value")
    nominal_text = entry.findtext("Nominal")
    if value_text is None or nominal_text is None:
        return None

    value = parse_decimal_string(normalize_decimal_string(value_text))
    nominal = parse_decimal_string(normalize_decimal_string(nominal_text))
    if value is None or nominal is None or nominal.is_zero():
        return None
    try:
        return value / nominal
    except InvalidOperation:
        return None


def _entry_raw_rate(entry: ET.Element) -> Optional[str]:
    raw = entry.findtext("VunitRate")
    return raw if raw is not None else entry.findtext("Value")


def _find_exponent_marker(text: str) -> Optional[int]:
    for index, char in enumerate(text):
        if char in "eE":
            return index
    return None
