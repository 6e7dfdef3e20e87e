"""UserCategoryAdjustment ORM — persists the two-part per-(user, category) adjustment.

Invariants:
    - (user_id, category) is unique — at most one row per pair, created lazily on first write
    - user_adjustment_amount and admin_adjustment_amount are independent columns;
      writing one never touches the other
    - adjusted_by records which component was written last ('user' | 'admin')

Design Decisions:
    - user_id is an opaque string: identities come from the upstream auth gateway,
      no users table is owned here
    - The unique constraint doubles as the ON CONFLICT target of the atomic upsert
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Float, DateTime, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from shipping_pricing.core.enforce_pricing import MAX_USER_ID_LENGTH
from shipping_pricing.db.base import Base


class UserCategoryAdjustment(Base):
    """Per-user, per-category adjustment split into user-owned and admin-owned parts."""
    __tablename__ = "user_category_adjustments"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "category", name="uq_user_category_adjustments_user_category",
        ),
        CheckConstraint(
            "category IN ('copart', 'iaai', 'manheim')",
            name="ck_user_category_adjustments_category",
        ),
        CheckConstraint(
            "adjusted_by IN ('user', 'admin')",
            name="ck_user_category_adjustments_adjusted_by",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(
        String(MAX_USER_ID_LENGTH), nullable=False, index=True,
    )
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    user_adjustment_amount: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0,
    )
    admin_adjustment_amount: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0,
    )
    adjusted_by: Mapped[str] = mapped_column(String(10), nullable=False)
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
