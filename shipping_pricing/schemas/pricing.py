"""Pricing Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - Prices (base_price, default_price) are finite and >= 0
    - Adjustment amounts are finite, any sign
    - category is validated against the Category enum before reaching services
    - Response field names are stable: they are the contract with every collaborator

Design Decisions:
    - Category enum as field type: Pydantic rejects unknown values natively
    - field_validator for side-effect-free transforms (strip) — keeps models pure
    - Responses built with from_attributes: ORM rows and engine dataclasses serialize alike
    - AdjustPriceRequest accepts "userId" (wire name) or "user_id"
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shipping_pricing.core.domain_types import Category
from shipping_pricing.core.enforce_pricing import MAX_USER_ID_LENGTH


def _strip_city(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("city cannot be empty or whitespace")
    return v


# --- Requests -----------------------------------------------------------------

class CityPriceCreate(BaseModel):
    """Create a base price for one (city, category)."""
    city: str = Field(min_length=1, max_length=200)
    category: Category
    base_price: float = Field(ge=0, allow_inf_nan=False)

    @field_validator("city")
    @classmethod
    def strip_city(cls, v: str) -> str:
        return _strip_city(v)


class CityPriceUpdate(BaseModel):
    """Change the baseline and/or identity of one city price."""
    base_price: float | None = Field(None, ge=0, allow_inf_nan=False)
    city: str | None = Field(None, min_length=1, max_length=200)
    category: Category | None = None

    @field_validator("city")
    @classmethod
    def strip_city(cls, v: str | None) -> str | None:
        return _strip_city(v)

    @model_validator(mode="after")
    def require_a_change(self):
        if self.base_price is None and self.city is None and self.category is None:
            raise ValueError("provide at least one of base_price, city, category")
        return self


class AdjustBasePriceRequest(BaseModel):
    """Re-base a whole category, or one city in it, from its default price."""
    category: Category
    city: str | None = Field(None, max_length=200)
    adjustment_amount: float = Field(allow_inf_nan=False)


class BulkDefaultPriceUpdate(BaseModel):
    """Declare a new default price for every matching city price."""
    city: str | None = Field(None, max_length=200)
    category: Category | None = None
    default_price: float = Field(ge=0, allow_inf_nan=False)


class AdjustPriceRequest(BaseModel):
    """Set the caller's adjustment component; admins may name a target user."""
    model_config = ConfigDict(populate_by_name=True)

    category: Category
    adjustment_amount: float = Field(allow_inf_nan=False)
    user_id: str | None = Field(None, alias="userId", max_length=MAX_USER_ID_LENGTH)


# --- Responses ----------------------------------------------------------------

class CityPriceResponse(BaseModel):
    """CityPrice row."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    city: str
    category: str
    default_price: float
    base_price: float
    last_adjustment_amount: float | None = None
    last_adjustment_date: datetime | None = None


class AdjustmentResponse(BaseModel):
    """Merged per-(user, category) adjustment."""
    model_config = ConfigDict(from_attributes=True)

    user: str
    category: str
    user_adjustment_amount: float
    admin_adjustment_amount: float
    total_adjustment_amount: float
    adjusted_by: Literal["user", "admin"] | None = None
    updated_at: datetime | None = None


class EffectivePriceResponse(BaseModel):
    """Base price composed with one user's adjustments."""
    model_config = ConfigDict(from_attributes=True)

    city: str
    category: str
    default_price: float
    base_price: float
    base_last_adjustment_amount: float | None = None
    base_last_adjustment_date: datetime | None = None
    user_adjustment_amount: float
    admin_adjustment_amount: float
    total_adjustment_amount: float
    adjusted_by: Literal["user", "admin"] | None = None
    effective_price: float


class ModifiedCountResponse(BaseModel):
    modified_count: int


class PageMetaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class PaginatedCityPrices(BaseModel):
    data: list[CityPriceResponse]
    meta: PageMetaResponse


class PaginatedEffectivePrices(BaseModel):
    data: list[EffectivePriceResponse]
    meta: PageMetaResponse
