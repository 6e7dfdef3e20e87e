"""Public Cities Route — city names grouped by auction category, no identity required."""

from fastapi import APIRouter, Depends, Query

from shipping_pricing.api.deps import get_pricing_service
from shipping_pricing.services.pricing_service import PricingService

router = APIRouter(prefix="/api/v1/public", tags=["public"])


@router.get("/cities", response_model=dict[str, list[str]])
async def get_cities_by_category(
    category: str | None = Query(None),
    service: PricingService = Depends(get_pricing_service),
):
    return await service.get_cities_by_category(category)
