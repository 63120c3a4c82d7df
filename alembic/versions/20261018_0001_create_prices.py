"""create prices table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "prices",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("product_category", sa.String(length=255), nullable=False),
        sa.Column(
            "product_price",
            sa.Numeric(precision=12, scale=2),
            nullable=False,
            comment="Unit price, two decimal places",
        ),
        sa.Column("manufacture_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_prices_product_category",
        "prices",
        ["product_category"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_prices_product_category", table_name="prices")
    op.drop_table("prices")
