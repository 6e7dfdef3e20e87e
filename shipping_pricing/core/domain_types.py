"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId wraps the opaque identity string handed in by the auth gateway
    - CityPriceId wraps a UUID — never use bare UUID in domain logic
    - Category values are fixed: copart, iaai, manheim
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and bind to String columns without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
CityPriceId = NewType("CityPriceId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

Amount = NewType("Amount", float)   # signed delta
Price = NewType("Price", float)     # >= 0


# ─── Enums ───────────────────────────────────────────────────────

class Category(str, Enum):
    """Auction houses a shipping price is quoted per."""
    COPART = "copart"
    IAAI = "iaai"
    MANHEIM = "manheim"


class AdjustmentRole(str, Enum):
    """Which adjustment component a write targets — maps to `adjusted_by`."""
    USER = "user"
    ADMIN = "admin"


CATEGORY_VALUES: tuple[str, ...] = tuple(c.value for c in Category)
