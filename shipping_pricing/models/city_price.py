"""CityPrice ORM — persists the shared base shipping price for one (city, category).

Invariants:
    - (lower(city), category) is unique — city is case-insensitively unique per category
    - default_price >= 0 and base_price >= 0 (CHECK constraints)
    - base_price == default_price + coalesce(last_adjustment_amount, 0)
    - category is one of copart, iaai, manheim (CHECK constraint)

Design Decisions:
    - Functional unique index over lower(city): one row per city regardless of input casing,
      and case-insensitive lookups hit the index
    - CHECK on base_price lets a category-wide re-basing fail atomically instead of
      leaving some rows below zero
    - No relationship to user_category_adjustments: adjustments are keyed by (user, category),
      so deleting a city price never touches them
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Float, DateTime, CheckConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from shipping_pricing.db.base import Base


class CityPrice(Base):
    """Base price for a (city, category) pair."""
    __tablename__ = "city_prices"
    __table_args__ = (
        CheckConstraint(
            "default_price >= 0", name="ck_city_prices_default_price_non_negative",
        ),
        CheckConstraint(
            "base_price >= 0", name="ck_city_prices_base_price_non_negative",
        ),
        CheckConstraint(
            "category IN ('copart', 'iaai', 'manheim')",
            name="ck_city_prices_category",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    city: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    default_price: Mapped[float] = mapped_column(Float, nullable=False)
    base_price: Mapped[float] = mapped_column(Float, nullable=False)
    last_adjustment_amount: Mapped[float | None] = mapped_column(
        Float, nullable=True,
    )
    last_adjustment_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


Index(
    "uq_city_prices_city_lower_category",
    func.lower(CityPrice.city),
    CityPrice.category,
    unique=True,
)
