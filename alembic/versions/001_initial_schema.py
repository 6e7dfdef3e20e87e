"""Initial schema — city_prices, user_category_adjustments.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_CATEGORIES = "category IN ('copart', 'iaai', 'manheim')"


def upgrade() -> None:
    op.create_table(
        "city_prices",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("city", sa.String(200), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("default_price", sa.Float, nullable=False),
        sa.Column("base_price", sa.Float, nullable=False),
        sa.Column("last_adjustment_amount", sa.Float, nullable=True),
        sa.Column("last_adjustment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("default_price >= 0", name="ck_city_prices_default_price_non_negative"),
        sa.CheckConstraint("base_price >= 0", name="ck_city_prices_base_price_non_negative"),
        sa.CheckConstraint(_CATEGORIES, name="ck_city_prices_category"),
    )
    op.create_index("ix_city_prices_category", "city_prices", ["category"])
    op.create_index(
        "uq_city_prices_city_lower_category",
        "city_prices",
        [sa.text("lower(city)"), "category"],
        unique=True,
    )

    op.create_table(
        "user_category_adjustments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("user_adjustment_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("admin_adjustment_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("adjusted_by", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "category", name="uq_user_category_adjustments_user_category"),
        sa.CheckConstraint(_CATEGORIES, name="ck_user_category_adjustments_category"),
        sa.CheckConstraint(
            "adjusted_by IN ('user', 'admin')",
            name="ck_user_category_adjustments_adjusted_by",
        ),
    )
    op.create_index("ix_user_category_adjustments_user_id", "user_category_adjustments", ["user_id"])
    op.create_index("ix_user_category_adjustments_category", "user_category_adjustments", ["category"])


def downgrade() -> None:
    op.drop_table("user_category_adjustments")
    op.drop_index("uq_city_prices_city_lower_category", table_name="city_prices")
    op.drop_table("city_prices")
