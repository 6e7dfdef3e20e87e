"""Pricing Input Enforcement — rejects values the core must never persist.

Invariants:
    - Prices (base_price, default_price) are finite and >= 0
    - Adjustment amounts are finite and bounded by MAX_MAGNITUDE; sign is free
    - Category is one of the fixed Category values
    - User ids are non-blank and fit the user_id column (MAX_USER_ID_LENGTH)
    - Every function is PURE: returns the normalized value or raises PricingValidationError

Design Decisions:
    - Raise instead of returning error dicts: callers are services, not an agent loop,
      and the global handler maps PricingValidationError to a 400 envelope
    - bool rejected as a number: True/False are ints in Python but never prices
"""

import math

from shipping_pricing.core.domain_types import Amount, Category, CATEGORY_VALUES, Price
from shipping_pricing.core.errors import PricingValidationError

# Any sum of a base price and two components stays far inside float range
MAX_MAGNITUDE = 1e9

# Width of the user_id column
MAX_USER_ID_LENGTH = 64


def parse_category(value: "Category | str | None", field: str = "category") -> Category:
    """Coerce a raw category value into Category, rejecting unknown values."""
    if isinstance(value, Category):
        return value
    if isinstance(value, str):
        try:
            return Category(value.strip().lower())
        except ValueError:
            pass
    raise PricingValidationError(
        f"{field} must be one of: {', '.join(CATEGORY_VALUES)}", field,
    )


def parse_optional_category(
    value: "Category | str | None", field: str = "category",
) -> Category | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_category(value, field)


def check_amount(value: float, field: str = "adjustment_amount") -> Amount:
    """Adjustment deltas may be negative but must be real numbers within MAX_MAGNITUDE."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PricingValidationError(f"{field} must be a number", field)
    if not math.isfinite(value):
        raise PricingValidationError(f"{field} must be finite", field)
    if abs(value) > MAX_MAGNITUDE:
        raise PricingValidationError(
            f"{field} must be between -{MAX_MAGNITUDE:g} and {MAX_MAGNITUDE:g}", field,
        )
    return Amount(float(value))


def check_price(value: float, field: str = "base_price") -> Price:
    """Prices are finite and non-negative."""
    amount = check_amount(value, field)
    if amount < 0:
        raise PricingValidationError(f"{field} must be >= 0", field)
    return Price(amount)


def require_city(value: str | None, field: str = "city") -> str:
    if value is None or not value.strip():
        raise PricingValidationError(f"{field} is required", field)
    return value.strip()


def require_user_id(value: str | None, field: str = "current_user_id") -> str:
    """Identity must be present before any target can be resolved."""
    if value is None or not str(value).strip():
        raise PricingValidationError(f"{field} is required", field)
    value = str(value).strip()
    if len(value) > MAX_USER_ID_LENGTH:
        raise PricingValidationError(
            f"{field} must be at most {MAX_USER_ID_LENGTH} characters", field,
        )
    return value
