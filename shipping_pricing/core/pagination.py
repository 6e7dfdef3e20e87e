"""Pagination — pure page arithmetic shared by paginated listings.

Invariants:
    - page is 1-based; limit is bounded by max_page_size
    - total_pages is 0 when there are no items
"""

import math
from dataclasses import dataclass, asdict

from shipping_pricing.core.errors import PricingValidationError


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageMeta:
    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    def to_dict(self) -> dict:
        return asdict(self)


def make_page_request(page: int, limit: int, max_page_size: int) -> PageRequest:
    """Validate raw paging input."""
    if page < 1:
        raise PricingValidationError("page must be >= 1", "page")
    if limit < 1 or limit > max_page_size:
        raise PricingValidationError(
            f"limit must be between 1 and {max_page_size}", "limit",
        )
    return PageRequest(page=page, limit=limit)


def build_page_meta(request: PageRequest, total_items: int) -> PageMeta:
    total_pages = math.ceil(total_items / request.limit) if total_items else 0
    return PageMeta(
        current_page=request.page,
        items_per_page=request.limit,
        total_items=total_items,
        total_pages=total_pages,
        has_next_page=request.page < total_pages,
        has_previous_page=request.page > 1,
    )
