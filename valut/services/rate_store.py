"""Persistence of exchange rate rows keyed by (from, to, date)."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from valut.database import get_session
from valut.models import ExchangeRate
from valut.utils.dates import ensure_utc


class SqlRateStore:
    """Point lookups and single-row writes against ``exchange_rates``.

    Every write commits on its own; there is no transaction spanning rows.
    """

    def __init__(self, session_factory=None) -> None:
        self._session_factory = session_factory or get_session()

    def get(self, from_currency: str, to_currency: str, day: date) -> Optional[ExchangeRate]:
        session = self._session_factory()
        stmt = select(ExchangeRate).where(
            ExchangeRate.from_currency == from_currency,
            ExchangeRate.to_currency == to_currency,
            ExchangeRate.date == day,
        )
        return session.execute(stmt).scalar_one_or_none()

    def insert(
        self,
        from_currency: str,
        to_currency: str,
        day: date,
        rate: Decimal,
        now: datetime,
    ) -> ExchangeRate:
        session = self._session_factory()
        timestamp = ensure_utc(now)
        row = ExchangeRate(
            id=uuid.uuid4(),
            from_currency=from_currency,
            to_currency=to_currency,
            date=day,
            rate=rate,
            created_at=timestamp,
            updated_at=timestamp,
        )
        try:
            session.add(row)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        return row

    def update_rate(self, row_id: uuid.UUID, rate: Decimal, now: datetime) -> None:
        session = self._session_factory()
        stmt = (
            update(ExchangeRate)
            .where(ExchangeRate.id == row_id)
            .values(rate=rate, updated_at=ensure_utc(now))
            .execution_options(synchronize_session="fetch")
        )
        try:
            session.execute(stmt)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
