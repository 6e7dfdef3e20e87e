"""Effective Price Routes — base prices composed with one user's adjustments.

Invariants:
    - Role-aware via userId exactly like the adjustment routes
    - /prices/{city}/{category} returns 404 only when the city price is missing
"""

from fastapi import APIRouter, Depends, Query

from shipping_pricing.api.deps import CallerIdentity, get_caller, get_pricing_service
from shipping_pricing.schemas.pricing import (
    EffectivePriceResponse, PageMetaResponse, PaginatedEffectivePrices,
)
from shipping_pricing.services.pricing_service import PricingService

router = APIRouter(prefix="/api/v1/shippings/prices", tags=["prices"])


@router.get("", response_model=list[EffectivePriceResponse])
async def get_prices(
    category: str | None = Query(None),
    city: str | None = Query(None),
    user_id: str | None = Query(None, alias="userId"),
    caller: CallerIdentity = Depends(get_caller),
    service: PricingService = Depends(get_pricing_service),
):
    prices = await service.get_prices(
        caller.user_id, caller.is_admin,
        target_user_id=user_id, category=category, city=city,
    )
    return [EffectivePriceResponse.model_validate(p) for p in prices]


@router.get("/paginated", response_model=PaginatedEffectivePrices)
async def get_prices_paginated(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    search: str | None = Query(None, max_length=200),
    category: str | None = Query(None),
    user_id: str | None = Query(None, alias="userId"),
    caller: CallerIdentity = Depends(get_caller),
    service: PricingService = Depends(get_pricing_service),
):
    result = await service.get_prices_paginated(
        caller.user_id, caller.is_admin,
        target_user_id=user_id, category=category, search=search,
        page=page, limit=limit,
    )
    return PaginatedEffectivePrices(
        data=[EffectivePriceResponse.model_validate(p) for p in result["data"]],
        meta=PageMetaResponse.model_validate(result["meta"]),
    )


@router.get("/{city}/{category}", response_model=EffectivePriceResponse)
async def get_effective_price(
    city: str,
    category: str,
    user_id: str | None = Query(None, alias="userId"),
    caller: CallerIdentity = Depends(get_caller),
    service: PricingService = Depends(get_pricing_service),
):
    price = await service.get_effective_price(
        caller.user_id, caller.is_admin, city, category, target_user_id=user_id,
    )
    return EffectivePriceResponse.model_validate(price)
