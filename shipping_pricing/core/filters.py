"""Query Filters — explicit filter structs for every read operation.

Invariants:
    - Every field is optional; None means "do not filter on this"
    - normalized() never raises: blanks become None, whitespace is stripped
    - city matches case-insensitively and exactly; search matches case-insensitively as a substring
"""

from dataclasses import dataclass, replace

from shipping_pricing.core.domain_types import Category


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class CityPriceFilter:
    """Filter for CityPrice reads and bulk writes."""
    city: str | None = None
    category: Category | None = None
    search: str | None = None

    def normalized(self) -> "CityPriceFilter":
        return replace(
            self, city=_blank_to_none(self.city), search=_blank_to_none(self.search),
        )

    def describe(self) -> str:
        """Human-readable identifier for error messages."""
        parts = [
            f"{name}={value.value if isinstance(value, Category) else value}"
            for name, value in (
                ("city", self.city), ("category", self.category), ("search", self.search),
            )
            if value is not None
        ]
        return ", ".join(parts) or "all"
