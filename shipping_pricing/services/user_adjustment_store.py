"""UserAdjustment Store — persistence for per-(user, category) two-part adjustments.

Invariants:
    - upsert_component writes exactly ONE of user_adjustment_amount / admin_adjustment_amount
      plus adjusted_by; the other component is never read, recomputed, or cleared
    - Concurrent user-write and admin-write for the same pair never create two rows
      and never lose either write
    - Reads never create rows; a missing row is a valid zero-value state

Design Decisions:
    - PostgreSQL / SQLite: one INSERT ... ON CONFLICT (user_id, category) DO UPDATE statement,
      guarded by the unique constraint — atomic in the database, no retry needed
    - Other dialects: UPDATE, then INSERT when nothing matched; a unique violation on INSERT
      means another writer created the row first, so roll back and retry as UPDATE
      (bounded by max_retries, then ConcurrencyError)
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shipping_pricing.core.domain_types import AdjustmentRole, Category
from shipping_pricing.core.errors import ConcurrencyError, ErrorContext
from shipping_pricing.models.user_category_adjustment import UserCategoryAdjustment

logger = logging.getLogger(__name__)

_NATIVE_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

_COMPONENT_COLUMN = {
    AdjustmentRole.USER: "user_adjustment_amount",
    AdjustmentRole.ADMIN: "admin_adjustment_amount",
}


def _new_row_values(
    user_id: str, category: Category, role: AdjustmentRole, amount: float,
) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "id": uuid.uuid4(),
        "user_id": user_id,
        "category": category.value,
        "user_adjustment_amount": amount if role is AdjustmentRole.USER else 0.0,
        "admin_adjustment_amount": amount if role is AdjustmentRole.ADMIN else 0.0,
        "adjusted_by": role.value,
        "created_at": now,
        "updated_at": now,
    }


class UserAdjustmentStore:
    """Adjustment persistence backed by an AsyncSession."""

    def __init__(self, db: AsyncSession, max_retries: int = 3):
        self.db = db
        self.max_retries = max_retries

    # ─── Reads ───────────────────────────────────────────────────

    async def find_one(
        self, user_id: str, category: Category,
    ) -> UserCategoryAdjustment | None:
        rows = await self.find(user_id=user_id, category=category)
        return rows[0] if rows else None

    async def find(
        self, user_id: str | None = None, category: Category | None = None,
    ) -> list[UserCategoryAdjustment]:
        """Rows for a user, a category across users, both, or everything."""
        stmt = select(UserCategoryAdjustment)
        if user_id is not None:
            stmt = stmt.where(UserCategoryAdjustment.user_id == user_id)
        if category is not None:
            stmt = stmt.where(UserCategoryAdjustment.category == category.value)
        stmt = stmt.order_by(
            UserCategoryAdjustment.user_id, UserCategoryAdjustment.category,
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # ─── Writes ──────────────────────────────────────────────────

    async def upsert_component(
        self, user_id: str, category: Category, role: AdjustmentRole, amount: float,
    ) -> UserCategoryAdjustment:
        """Set one adjustment component for (user, category), creating the row if needed."""
        dialect = self.db.get_bind().dialect.name
        insert_fn = _NATIVE_UPSERT_DIALECTS.get(dialect)
        if insert_fn is not None:
            await self._upsert_native(insert_fn, user_id, category, role, amount)
        else:
            await self._upsert_portable(user_id, category, role, amount)

        logger.info(
            f"Adjustment set: {_COMPONENT_COLUMN[role]}={amount}",
            extra={"user_id": user_id, "category": category.value, "role": role.value},
        )
        return await self.find_one(user_id, category)

    async def _upsert_native(
        self, insert_fn, user_id: str, category: Category,
        role: AdjustmentRole, amount: float,
    ) -> None:
        column = _COMPONENT_COLUMN[role]
        stmt = insert_fn(UserCategoryAdjustment).values(
            **_new_row_values(user_id, category, role, amount),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "category"],
            set_={
                column: stmt.excluded[column],
                "adjusted_by": stmt.excluded.adjusted_by,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def _upsert_portable(
        self, user_id: str, category: Category, role: AdjustmentRole, amount: float,
    ) -> None:
        for attempt in range(1, self.max_retries + 1):
            if await self._update_component(user_id, category, role, amount):
                await self.db.commit()
                return
            try:
                await self.db.execute(
                    insert(UserCategoryAdjustment).values(
                        **_new_row_values(user_id, category, role, amount),
                    ),
                )
                await self.db.commit()
                return
            except IntegrityError:
                await self.db.rollback()
                logger.warning(
                    "Adjustment insert lost a race; retrying as update",
                    extra={
                        "user_id": user_id, "category": category.value,
                        "role": role.value, "attempt": attempt,
                    },
                )
        raise ConcurrencyError(
            f"Could not upsert adjustment after {self.max_retries} attempts",
            ErrorContext(
                user_id=user_id, category=category.value, operation="upsert_component",
            ),
        )

    async def _update_component(
        self, user_id: str, category: Category, role: AdjustmentRole, amount: float,
    ) -> bool:
        """UPDATE the one component on an existing row. True if a row matched."""
        stmt = (
            update(UserCategoryAdjustment)
            .where(UserCategoryAdjustment.user_id == user_id)
            .where(UserCategoryAdjustment.category == category.value)
            .values({_COMPONENT_COLUMN[role]: amount, "adjusted_by": role.value})
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0
