"""API Dependencies — caller identity, admin gate, and per-request PricingService.

Invariants:
    - Identity comes from headers set by the upstream auth gateway; it is trusted as-is
    - A request without a user id header never reaches a service (401)
    - A user id wider than the user_id column is rejected (400)
    - require_admin is the coarse role gate; record/field scoping stays in core/access_policy

Design Decisions:
    - Header names read from Settings: the gateway owns the contract
    - Roles header is a comma-separated list, compared case-insensitively
"""

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shipping_pricing.config import get_settings
from shipping_pricing.core.enforce_pricing import require_user_id
from shipping_pricing.core.errors import (
    AuthenticationRequiredError, ErrorContext, ForbiddenError,
)
from shipping_pricing.infrastructure.database import get_db
from shipping_pricing.services.pricing_service import PricingService


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    is_admin: bool


def get_caller(request: Request) -> CallerIdentity:
    """Read the already-authenticated caller from gateway headers."""
    settings = get_settings()
    user_id = (request.headers.get(settings.user_id_header) or "").strip()
    if not user_id:
        raise AuthenticationRequiredError(ErrorContext(operation=request.url.path))
    user_id = require_user_id(user_id, settings.user_id_header)
    roles = {
        r.strip().lower()
        for r in (request.headers.get(settings.user_roles_header) or "").split(",")
        if r.strip()
    }
    return CallerIdentity(
        user_id=user_id, is_admin=settings.admin_role.lower() in roles,
    )


def require_admin(caller: CallerIdentity = Depends(get_caller)) -> CallerIdentity:
    if not caller.is_admin:
        raise ForbiddenError(
            get_settings().admin_role, ErrorContext(user_id=caller.user_id),
        )
    return caller


def get_pricing_service(db: AsyncSession = Depends(get_db)) -> PricingService:
    return PricingService(db)
