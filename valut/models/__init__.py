"""SQLAlchemy ORM models for stored exchange rates."""

from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

from sqlalchemy import Date, DateTime, Index, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from valut.database import Base

RATE_PRECISION = 24
RATE_SCALE = 10


class ExchangeRate(Base):
    """Rate for converting one unit of ``from_currency`` into ``to_currency`` on ``date``."""

    __tablename__ = "exchange_rates"
    __table_args__ = (
        UniqueConstraint(
            "from_currency",
            "to_currency",
            "date",
            name="uq_exchange_rates_natural_key",
        ),
        Index("ix_exchange_rates_date", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    from_currency: Mapped[str] = mapped_column(String(12), nullable=False)
    to_currency: Mapped[str] = mapped_column(String(12), nullable=False)
    rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=RATE_PRECISION, scale=RATE_SCALE), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<ExchangeRate {self.from_currency}->{self.to_currency} "
            f"{self.date.isoformat()} rate={self.rate}>"
        )
