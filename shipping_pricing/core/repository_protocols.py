"""Boundary Protocols — row contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The pricing engine reads rows through these Protocols, never through ORM classes

Design Decisions:
    - Protocol over ABC: ORM rows, dataclasses and test doubles all satisfy them structurally
"""

from datetime import datetime
from typing import Protocol


class CityPriceLike(Protocol):
    """Structural contract for CityPrice rows passed to the pricing engine."""
    city: str
    category: str
    default_price: float
    base_price: float
    last_adjustment_amount: float | None
    last_adjustment_date: datetime | None


class AdjustmentLike(Protocol):
    """Structural contract for UserCategoryAdjustment rows."""
    user_id: str
    category: str
    user_adjustment_amount: float
    admin_adjustment_amount: float
    adjusted_by: str | None
    updated_at: datetime | None
