"""create exchange_rates

Revision ID: 3c1f0a9d2e7b
Revises: 
Create Date: 2025-01-10 09:12:41.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2e7b'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "exchange_rates",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("from_currency", sa.String(length=12), nullable=False),
        sa.Column("to_currency", sa.String(length=12), nullable=False),
        sa.Column("rate", sa.Numeric(precision=24, scale=10), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "from_currency",
            "to_currency",
            "date",
            name="uq_exchange_rates_natural_key",
        ),
    )
    op.create_index("ix_exchange_rates_date", "exchange_rates", ["date"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_exchange_rates_date", table_name="exchange_rates")
    op.drop_table("exchange_rates")
