"""Pricing Engine — pure composition of base prices and adjustment components.

Invariants:
    - effective_price = base_price + user_adjustment_amount + admin_adjustment_amount, exactly
      (no rounding, no clamping)
    - A missing adjustment row composes as {0, 0, adjusted_by=None}
    - rebase(default_price, delta) = default_price + delta — a SET from baseline, never an increment
    - merge_by_category is a single pass over city prices after one pass over adjustments: O(n + m)

Design Decisions:
    - Operates on CityPriceLike / AdjustmentLike protocols, not ORM classes: core never imports models
    - Views are frozen dataclasses with to_dict(): routes serialize them through pydantic schemas
    - rebase() is written with plain + so the store can pass column expressions and get
      SQL back: the same formula runs inside one UPDATE, keeping re-basing atomic
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Iterable

from shipping_pricing.core.domain_types import Category
from shipping_pricing.core.repository_protocols import AdjustmentLike, CityPriceLike


@dataclass(frozen=True)
class AdjustmentView:
    """Merged per-(user, category) adjustment with its derived total."""
    user: str
    category: str
    user_adjustment_amount: float
    admin_adjustment_amount: float
    total_adjustment_amount: float
    adjusted_by: str | None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class EffectivePrice:
    """Final quoted price for one (city, category) as seen by one user."""
    city: str
    category: str
    default_price: float
    base_price: float
    base_last_adjustment_amount: float | None
    base_last_adjustment_date: datetime | None
    user_adjustment_amount: float
    admin_adjustment_amount: float
    total_adjustment_amount: float
    adjusted_by: str | None
    effective_price: float

    def to_dict(self) -> dict:
        return asdict(self)


def rebase(default_price: float, delta: float) -> float:
    """Base price after a category-wide re-basing by delta."""
    return default_price + delta


def _components(adjustment: AdjustmentLike | None) -> tuple[float, float]:
    if adjustment is None:
        return 0.0, 0.0
    return (
        adjustment.user_adjustment_amount or 0.0,
        adjustment.admin_adjustment_amount or 0.0,
    )


def total_adjustment(adjustment: AdjustmentLike | None) -> float:
    user_amount, admin_amount = _components(adjustment)
    return user_amount + admin_amount


def effective_price(
    city_price: CityPriceLike, adjustment: AdjustmentLike | None,
) -> float:
    return city_price.base_price + total_adjustment(adjustment)


def _category_value(category: "Category | str") -> str:
    return category.value if isinstance(category, Category) else category


def adjustment_view(
    adjustment: AdjustmentLike | None, user_id: str, category: "Category | str",
) -> AdjustmentView:
    """Merged view for one (user, category). Zero-value shape when the row is missing."""
    user_amount, admin_amount = _components(adjustment)
    return AdjustmentView(
        user=user_id,
        category=_category_value(category),
        user_adjustment_amount=user_amount,
        admin_adjustment_amount=admin_amount,
        total_adjustment_amount=user_amount + admin_amount,
        adjusted_by=adjustment.adjusted_by if adjustment is not None else None,
        updated_at=adjustment.updated_at if adjustment is not None else None,
    )


def build_effective_price(
    city_price: CityPriceLike, adjustment: AdjustmentLike | None,
) -> EffectivePrice:
    user_amount, admin_amount = _components(adjustment)
    return EffectivePrice(
        city=city_price.city,
        category=_category_value(city_price.category),
        default_price=city_price.default_price,
        base_price=city_price.base_price,
        base_last_adjustment_amount=city_price.last_adjustment_amount,
        base_last_adjustment_date=city_price.last_adjustment_date,
        user_adjustment_amount=user_amount,
        admin_adjustment_amount=admin_amount,
        total_adjustment_amount=total_adjustment(adjustment),
        adjusted_by=adjustment.adjusted_by if adjustment is not None else None,
        effective_price=effective_price(city_price, adjustment),
    )


def merge_by_category(
    city_prices: Iterable[CityPriceLike],
    adjustments: Iterable[AdjustmentLike],
) -> list[EffectivePrice]:
    """Compose every city price with its category's adjustment for one target user.

    adjustments must belong to a single user: one row per category at most.
    """
    by_category = {_category_value(a.category): a for a in adjustments}
    return [
        build_effective_price(cp, by_category.get(_category_value(cp.category)))
        for cp in city_prices
    ]
