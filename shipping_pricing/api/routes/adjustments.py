"""Adjustment Routes — per-(user, category) adjustment writes and reads.

Invariants:
    - Role-aware: an admin may name userId; anyone else always acts on themselves
    - Target resolution happens in the service (core/access_policy), never here
    - A missing adjustment reads as zero, never 404
"""

from fastapi import APIRouter, Depends, Query

from shipping_pricing.api.deps import CallerIdentity, get_caller, get_pricing_service
from shipping_pricing.schemas.pricing import AdjustmentResponse, AdjustPriceRequest
from shipping_pricing.services.pricing_service import PricingService

router = APIRouter(prefix="/api/v1/shippings", tags=["adjustments"])


@router.patch("/adjust-price", response_model=AdjustmentResponse)
async def adjust_price(
    body: AdjustPriceRequest,
    caller: CallerIdentity = Depends(get_caller),
    service: PricingService = Depends(get_pricing_service),
):
    """Set an adjustment: own user component, or an admin component for userId."""
    view = await service.adjust_price(
        body.category,
        body.adjustment_amount,
        current_user_id=caller.user_id,
        is_admin=caller.is_admin,
        target_user_id=body.user_id,
    )
    return AdjustmentResponse.model_validate(view)


@router.get("/adjustment", response_model=AdjustmentResponse)
async def get_adjustment(
    category: str = Query(...),
    user_id: str | None = Query(None, alias="userId"),
    caller: CallerIdentity = Depends(get_caller),
    service: PricingService = Depends(get_pricing_service),
):
    view = await service.get_adjustment(
        caller.user_id, caller.is_admin, category, target_user_id=user_id,
    )
    return AdjustmentResponse.model_validate(view)


@router.get("/adjustments", response_model=list[AdjustmentResponse])
async def get_all_adjustments(
    category: str | None = Query(None),
    user_id: str | None = Query(None, alias="userId"),
    caller: CallerIdentity = Depends(get_caller),
    service: PricingService = Depends(get_pricing_service),
):
    """Admin sees every user's rows (or one user's with userId); a user sees their own."""
    views = await service.get_all_adjustments(
        caller.user_id, caller.is_admin, target_user_id=user_id, category=category,
    )
    return [AdjustmentResponse.model_validate(v) for v in views]
