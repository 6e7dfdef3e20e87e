"""Pricing Service — orchestrates stores, access policy and pricing engine per operation.

Invariants:
    - Every adjustment read/write and every effective-price read goes through
      access_policy.resolve_target (or resolve_listing_scope, built on it)
    - Raw inputs are validated by core/enforce_pricing before any store is touched
    - get_prices fetches ALL adjustments for the target once, never per city
    - Reads never create adjustment rows; missing rows compose as zero
    - Admin-only operations are admin-only by convention of the caller: this layer
      scopes records and fields, it does not authenticate

Design Decisions:
    - Thin orchestration: SQL lives in the stores, arithmetic in core/pricing_engine
    - Takes the AsyncSession and builds its own stores: one service per request/session
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from shipping_pricing.config import Settings, get_settings
from shipping_pricing.core.access_policy import resolve_target, resolve_listing_scope
from shipping_pricing.core.domain_types import Category, CityPriceId
from shipping_pricing.core.enforce_pricing import (
    check_amount, check_price, parse_category, parse_optional_category, require_city,
)
from shipping_pricing.core.errors import ErrorContext, ResourceNotFoundError
from shipping_pricing.core.filters import CityPriceFilter
from shipping_pricing.core.pagination import build_page_meta, make_page_request
from shipping_pricing.core.pricing_engine import (
    AdjustmentView, EffectivePrice,
    adjustment_view, build_effective_price, merge_by_category,
)
from shipping_pricing.models.city_price import CityPrice
from shipping_pricing.services.city_price_store import CityPriceStore
from shipping_pricing.services.user_adjustment_store import UserAdjustmentStore

logger = logging.getLogger(__name__)


class PricingService:
    """Public pricing operations over one database session."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.city_prices = CityPriceStore(db)
        self.adjustments = UserAdjustmentStore(
            db, max_retries=self.settings.upsert_max_retries,
        )

    # ─── Base city prices ────────────────────────────────────────

    async def create_city_price(
        self, city: str, category: "Category | str", base_price: float,
    ) -> CityPrice:
        return await self.city_prices.create(
            require_city(city), parse_category(category), check_price(base_price),
        )

    async def list_city_prices(
        self,
        city: str | None = None,
        category: "Category | str | None" = None,
        search: str | None = None,
    ) -> list[CityPrice]:
        return await self.city_prices.find_by_filters(
            CityPriceFilter(city, parse_optional_category(category), search),
        )

    async def list_city_prices_paginated(
        self,
        page: int = 1,
        limit: int | None = None,
        category: "Category | str | None" = None,
        search: str | None = None,
    ) -> dict:
        request = make_page_request(
            page, limit or self.settings.default_page_size, self.settings.max_page_size,
        )
        rows, total = await self.city_prices.paginate(
            CityPriceFilter(category=parse_optional_category(category), search=search),
            request,
        )
        return {"data": rows, "meta": build_page_meta(request, total)}

    async def update_city_price(
        self,
        city: str | None,
        category: "Category | str | None",
        base_price: float | None = None,
        new_city: str | None = None,
        new_category: "Category | str | None" = None,
    ) -> CityPrice:
        changes = {
            "base_price": (
                check_price(base_price) if base_price is not None else None
            ),
            "city": require_city(new_city) if new_city is not None else None,
            "category": parse_optional_category(new_category, "new_category"),
        }
        return await self.city_prices.update(
            CityPriceFilter(city=city, category=parse_optional_category(category)),
            changes,
        )

    async def remove_city_price(self, city_price_id: CityPriceId) -> None:
        await self.city_prices.remove(city_price_id)

    async def adjust_base_price(
        self,
        category: "Category | str",
        adjustment_amount: float,
        city: str | None = None,
    ) -> dict:
        """Re-base a category (optionally one city) to default_price + adjustment_amount."""
        modified = await self.city_prices.adjust_base_price(
            parse_category(category), city, check_amount(adjustment_amount),
        )
        return {"modified_count": modified}

    async def bulk_update_default_price(
        self,
        default_price: float,
        city: str | None = None,
        category: "Category | str | None" = None,
    ) -> dict:
        modified = await self.city_prices.bulk_update_default_price(
            CityPriceFilter(city=city, category=parse_optional_category(category)),
            check_price(default_price, "default_price"),
        )
        return {"modified_count": modified}

    async def get_cities_by_category(
        self, category: "Category | str | None" = None,
    ) -> dict[str, list[str]]:
        return await self.city_prices.cities_by_category(
            parse_optional_category(category),
        )

    # ─── Per-user adjustments ────────────────────────────────────

    async def adjust_price(
        self,
        category: "Category | str",
        adjustment_amount: float,
        current_user_id: str,
        is_admin: bool,
        target_user_id: str | None = None,
    ) -> AdjustmentView:
        """Write the caller's component: the user's own, or the admin's on a target's behalf."""
        scope = resolve_target(current_user_id, is_admin, target_user_id)
        parsed = parse_category(category)
        row = await self.adjustments.upsert_component(
            scope.target_user_id, parsed, scope.role, check_amount(adjustment_amount),
        )
        logger.info(
            f"Price adjusted by {current_user_id} as {scope.role.value}",
            extra={
                "user_id": current_user_id, "target_user_id": scope.target_user_id,
                "category": parsed.value, "role": scope.role.value,
            },
        )
        return adjustment_view(row, scope.target_user_id, parsed)

    async def get_adjustment(
        self,
        current_user_id: str,
        is_admin: bool,
        category: "Category | str",
        target_user_id: str | None = None,
    ) -> AdjustmentView:
        scope = resolve_target(current_user_id, is_admin, target_user_id)
        parsed = parse_category(category)
        row = await self.adjustments.find_one(scope.target_user_id, parsed)
        return adjustment_view(row, scope.target_user_id, parsed)

    async def get_all_adjustments(
        self,
        current_user_id: str,
        is_admin: bool,
        target_user_id: str | None = None,
        category: "Category | str | None" = None,
    ) -> list[AdjustmentView]:
        """Admin without target: every stored row. Otherwise one view per category, zero-filled."""
        user_id = resolve_listing_scope(current_user_id, is_admin, target_user_id)
        parsed = parse_optional_category(category)
        rows = await self.adjustments.find(user_id=user_id, category=parsed)
        if user_id is None:
            return [adjustment_view(r, r.user_id, r.category) for r in rows]

        by_category = {r.category: r for r in rows}
        categories = [parsed] if parsed is not None else list(Category)
        return [
            adjustment_view(by_category.get(c.value), user_id, c)
            for c in categories
        ]

    # ─── Effective prices ────────────────────────────────────────

    async def get_prices(
        self,
        current_user_id: str,
        is_admin: bool,
        target_user_id: str | None = None,
        category: "Category | str | None" = None,
        city: str | None = None,
        search: str | None = None,
    ) -> list[EffectivePrice]:
        scope = resolve_target(current_user_id, is_admin, target_user_id)
        city_prices = await self.city_prices.find_by_filters(
            CityPriceFilter(city, parse_optional_category(category), search),
        )
        adjustments = await self.adjustments.find(user_id=scope.target_user_id)
        return merge_by_category(city_prices, adjustments)

    async def get_prices_paginated(
        self,
        current_user_id: str,
        is_admin: bool,
        target_user_id: str | None = None,
        category: "Category | str | None" = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> dict:
        scope = resolve_target(current_user_id, is_admin, target_user_id)
        request = make_page_request(
            page, limit or self.settings.default_page_size, self.settings.max_page_size,
        )
        city_prices, total = await self.city_prices.paginate(
            CityPriceFilter(category=parse_optional_category(category), search=search),
            request,
        )
        adjustments = await self.adjustments.find(user_id=scope.target_user_id)
        return {
            "data": merge_by_category(city_prices, adjustments),
            "meta": build_page_meta(request, total),
        }

    async def get_effective_price(
        self,
        current_user_id: str,
        is_admin: bool,
        city: str,
        category: "Category | str",
        target_user_id: str | None = None,
    ) -> EffectivePrice:
        scope = resolve_target(current_user_id, is_admin, target_user_id)
        parsed = parse_category(category)
        city = require_city(city)
        city_price = await self.city_prices.find_one(city, parsed)
        if city_price is None:
            raise ResourceNotFoundError(
                "CityPrice", f"{city}/{parsed.value}",
                ErrorContext(
                    user_id=scope.target_user_id, city=city, category=parsed.value,
                    operation="get_effective_price",
                ),
            )
        adjustment = await self.adjustments.find_one(scope.target_user_id, parsed)
        return build_effective_price(city_price, adjustment)
