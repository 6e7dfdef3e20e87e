"""CityPrice Store — persistence for base prices per (city, category).

Invariants:
    - City matching is case-insensitive and exact; search is case-insensitive substring
    - create() sets default_price = base_price, deltas NULL
    - update() with base_price declares a new baseline: default_price = base_price,
      last_adjustment_amount = 0
    - adjust_base_price() is ONE UPDATE statement computing base_price = default_price + delta
      in SQL — idempotent, never an increment, never read-modify-write
    - bulk_update_default_price() keeps base_price == default_price + coalesce(last delta, 0)
    - Reads use populate_existing: bulk UPDATEs bypass the identity map

Design Decisions:
    - Explicit AsyncSession handle in the constructor: the store is swappable, services never
      touch ORM queries directly
    - Each write commits itself: every write is a single statement, so there is no wider
      unit of work to coordinate
    - IntegrityError is translated here, where its meaning is known (duplicate city,
      base price below zero), not in the session manager
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shipping_pricing.core.domain_types import Category, CityPriceId
from shipping_pricing.core.errors import (
    ConflictError, ErrorContext, PricingValidationError, ResourceNotFoundError,
)
from shipping_pricing.core.filters import CityPriceFilter
from shipping_pricing.core.pagination import PageRequest
from shipping_pricing.core.pricing_engine import rebase
from shipping_pricing.models.city_price import CityPrice

logger = logging.getLogger(__name__)


def _apply_filters(stmt, filters: CityPriceFilter):
    """Add WHERE clauses for a filter to a select/update/delete statement."""
    f = filters.normalized()
    if f.city is not None:
        stmt = stmt.where(func.lower(CityPrice.city) == f.city.lower())
    if f.category is not None:
        stmt = stmt.where(CityPrice.category == f.category.value)
    if f.search is not None:
        stmt = stmt.where(
            func.lower(CityPrice.city).contains(f.search.lower(), autoescape=True),
        )
    return stmt


class CityPriceStore:
    """Base price persistence backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Reads ───────────────────────────────────────────────────

    async def get(self, city_price_id: CityPriceId) -> CityPrice | None:
        result = await self.db.execute(
            select(CityPrice)
            .where(CityPrice.id == city_price_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def find_one(self, city: str, category: Category) -> CityPrice | None:
        rows = await self._select(
            CityPriceFilter(city=city, category=category), limit=1,
        )
        return rows[0] if rows else None

    async def find_by_filters(self, filters: CityPriceFilter) -> list[CityPrice]:
        return await self._select(filters)

    async def paginate(
        self, filters: CityPriceFilter, page: PageRequest,
    ) -> tuple[list[CityPrice], int]:
        """One page of matching rows plus the total match count."""
        total = (await self.db.execute(
            _apply_filters(select(func.count(CityPrice.id)), filters),
        )).scalar_one()
        rows = await self._select(filters, offset=page.offset, limit=page.limit)
        return rows, total

    async def cities_by_category(
        self, category: Category | None = None,
    ) -> dict[str, list[str]]:
        """City names grouped by category, sorted alphabetically."""
        stmt = _apply_filters(
            select(CityPrice.category, CityPrice.city),
            CityPriceFilter(category=category),
        ).order_by(CityPrice.category, CityPrice.city)
        categories = [category] if category is not None else list(Category)
        grouped: dict[str, list[str]] = {c.value: [] for c in categories}
        for row_category, city in (await self.db.execute(stmt)).all():
            grouped.setdefault(row_category, []).append(city)
        return grouped

    async def _select(
        self, filters: CityPriceFilter, offset: int | None = None, limit: int | None = None,
    ) -> list[CityPrice]:
        stmt = (
            _apply_filters(select(CityPrice), filters)
            .order_by(CityPrice.category, CityPrice.city)
            .execution_options(populate_existing=True)
        )
        if offset is not None:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # ─── Writes ──────────────────────────────────────────────────

    async def create(
        self, city: str, category: Category, base_price: float,
    ) -> CityPrice:
        """Insert a new (city, category) base price. Conflict if it already exists."""
        ctx = ErrorContext(city=city, category=category.value, operation="create")
        if await self.find_one(city, category) is not None:
            raise ConflictError("CityPrice", f"{city}/{category.value}", ctx)

        row = CityPrice(
            city=city,
            category=category.value,
            default_price=base_price,
            base_price=base_price,
            last_adjustment_amount=None,
            last_adjustment_date=None,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("CityPrice", f"{city}/{category.value}", ctx)
        logger.info(
            f"City price created: {city}/{category.value} = {base_price}",
            extra={"city": city, "category": category.value},
        )
        return row

    async def update(self, filters: CityPriceFilter, changes: dict) -> CityPrice:
        """Update the single row a filter identifies.

        changes may hold base_price, city and category. A new base_price resets
        default_price to the same value and last_adjustment_amount to 0.
        """
        filters = filters.normalized()
        ctx = ErrorContext(
            city=filters.city,
            category=filters.category.value if filters.category else None,
            operation="update",
        )
        if filters.city is None and filters.category is None:
            raise PricingValidationError(
                "city or category is required to select a city price", "city", ctx,
            )
        matches = await self._select(filters, limit=2)
        if not matches:
            raise ResourceNotFoundError("CityPrice", filters.describe(), ctx)
        if len(matches) > 1:
            raise PricingValidationError(
                f"Filter ({filters.describe()}) matches more than one city price; "
                "specify both city and category",
                "city", ctx,
            )
        row = matches[0]

        values: dict = {}
        if changes.get("base_price") is not None:
            values["base_price"] = changes["base_price"]
            values["default_price"] = changes["base_price"]
            values["last_adjustment_amount"] = 0.0
        if changes.get("city") is not None:
            values["city"] = changes["city"]
        if changes.get("category") is not None:
            values["category"] = Category(changes["category"]).value
        if not values:
            raise PricingValidationError(
                "At least one of base_price, city, category must be provided",
                "base_price", ctx,
            )

        target = f"{values.get('city', row.city)}/{values.get('category', row.category)}"
        stmt = (
            update(CityPrice)
            .where(CityPrice.id == row.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("CityPrice", target, ctx)

        logger.info(
            f"City price updated: {row.city}/{row.category}",
            extra={"city": row.city, "category": row.category},
        )
        return await self.get(row.id)

    async def adjust_base_price(
        self, category: Category, city: str | None, delta: float,
    ) -> int:
        """Re-base every matching row to default_price + delta. Returns rows touched."""
        filters = CityPriceFilter(city=city, category=category).normalized()
        ctx = ErrorContext(
            city=filters.city, category=category.value, operation="adjust_base_price",
        )
        stmt = (
            _apply_filters(update(CityPrice), filters)
            .values(
                base_price=rebase(CityPrice.default_price, delta),
                last_adjustment_amount=delta,
                last_adjustment_date=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
        except IntegrityError:
            await self.db.rollback()
            raise PricingValidationError(
                f"Adjustment {delta} would drive a base price below zero",
                "adjustment_amount", ctx,
            )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError("CityPrice", filters.describe(), ctx)
        await self.db.commit()

        logger.info(
            f"Base price re-based by {delta} for {filters.describe()}",
            extra={
                "category": category.value, "city": filters.city,
                "modified_count": result.rowcount,
            },
        )
        return result.rowcount

    async def bulk_update_default_price(
        self, filters: CityPriceFilter, default_price: float,
    ) -> int:
        """Declare a new default_price for every matching row, keeping the last delta applied."""
        filters = CityPriceFilter(
            city=filters.city, category=filters.category,
        ).normalized()
        ctx = ErrorContext(
            city=filters.city,
            category=filters.category.value if filters.category else None,
            operation="bulk_update_default_price",
        )
        stmt = (
            _apply_filters(update(CityPrice), filters)
            .values(
                default_price=default_price,
                base_price=rebase(
                    default_price, func.coalesce(CityPrice.last_adjustment_amount, 0.0),
                ),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
        except IntegrityError:
            await self.db.rollback()
            raise PricingValidationError(
                f"default_price {default_price} plus the last adjustment "
                "would drive a base price below zero",
                "default_price", ctx,
            )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError("CityPrice", filters.describe(), ctx)
        await self.db.commit()

        logger.info(
            f"Default price set to {default_price} for {filters.describe()}",
            extra={"modified_count": result.rowcount},
        )
        return result.rowcount

    async def remove(self, city_price_id: CityPriceId) -> None:
        """Delete one row by id. Adjustment rows are never touched."""
        result = await self.db.execute(
            delete(CityPrice)
            .where(CityPrice.id == city_price_id)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError(
                "CityPrice", str(city_price_id), ErrorContext(operation="remove"),
            )
        await self.db.commit()
        logger.info(f"City price {city_price_id} deleted")
