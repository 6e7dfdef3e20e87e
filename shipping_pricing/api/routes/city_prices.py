"""City Price Routes — base price management (create, list, update, re-base, delete).

Invariants:
    - Writes require the admin role (require_admin); listings only need an identity
    - Routes never contain business logic: every call delegates to PricingService
    - category/city query values are validated by the core, not here

Design Decisions:
    - Update addresses its row by ?city=&category= (the pair is the natural key)
    - DELETE addresses its row by id and returns 204
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from shipping_pricing.api.deps import (
    CallerIdentity, get_caller, get_pricing_service, require_admin,
)
from shipping_pricing.core.domain_types import CityPriceId
from shipping_pricing.schemas.pricing import (
    AdjustBasePriceRequest, BulkDefaultPriceUpdate, CityPriceCreate,
    CityPriceResponse, CityPriceUpdate, ModifiedCountResponse,
    PageMetaResponse, PaginatedCityPrices,
)
from shipping_pricing.services.pricing_service import PricingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/shippings", tags=["city-prices"])


@router.post(
    "", response_model=CityPriceResponse, status_code=status.HTTP_201_CREATED,
)
async def create_city_price(
    body: CityPriceCreate,
    _: CallerIdentity = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service),
):
    """Create a base city price (admin only)."""
    row = await service.create_city_price(body.city, body.category, body.base_price)
    return CityPriceResponse.model_validate(row)


@router.get("", response_model=list[CityPriceResponse])
async def list_city_prices(
    city: str | None = Query(None),
    category: str | None = Query(None),
    _: CallerIdentity = Depends(get_caller),
    service: PricingService = Depends(get_pricing_service),
):
    """List base prices, optionally filtered by city and/or category."""
    rows = await service.list_city_prices(city=city, category=category)
    return [CityPriceResponse.model_validate(r) for r in rows]


@router.get("/paginated", response_model=PaginatedCityPrices)
async def list_city_prices_paginated(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    search: str | None = Query(None, max_length=200),
    category: str | None = Query(None),
    _: CallerIdentity = Depends(get_caller),
    service: PricingService = Depends(get_pricing_service),
):
    """One page of base prices with pagination meta."""
    result = await service.list_city_prices_paginated(
        page=page, limit=limit, category=category, search=search,
    )
    return PaginatedCityPrices(
        data=[CityPriceResponse.model_validate(r) for r in result["data"]],
        meta=PageMetaResponse.model_validate(result["meta"]),
    )


@router.patch("", response_model=CityPriceResponse)
async def update_city_price(
    body: CityPriceUpdate,
    city: str | None = Query(None),
    category: str | None = Query(None),
    _: CallerIdentity = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service),
):
    """Overwrite a city price's baseline (admin only). Resets the last re-basing delta."""
    row = await service.update_city_price(
        city=city,
        category=category,
        base_price=body.base_price,
        new_city=body.city,
        new_category=body.category,
    )
    return CityPriceResponse.model_validate(row)


@router.patch("/default-price", response_model=ModifiedCountResponse)
async def bulk_update_default_price(
    body: BulkDefaultPriceUpdate,
    _: CallerIdentity = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service),
):
    """Set default_price on every matching row (admin only)."""
    return await service.bulk_update_default_price(
        body.default_price, city=body.city, category=body.category,
    )


@router.patch("/adjust-base-price", response_model=ModifiedCountResponse)
async def adjust_base_price(
    body: AdjustBasePriceRequest,
    caller: CallerIdentity = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service),
):
    """Re-base a category (or one city in it) from its default price (admin only)."""
    result = await service.adjust_base_price(
        body.category, body.adjustment_amount, city=body.city,
    )
    logger.info(
        f"Base price adjustment by {caller.user_id}",
        extra={"user_id": caller.user_id, "modified_count": result["modified_count"]},
    )
    return result


@router.delete("/{city_price_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_city_price(
    city_price_id: UUID,
    _: CallerIdentity = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service),
):
    """Delete a city price (admin only). User adjustments are unaffected."""
    await service.remove_city_price(CityPriceId(city_price_id))
