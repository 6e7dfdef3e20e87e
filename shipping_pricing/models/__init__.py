"""ORM Models — SQLAlchemy declarative models for the pricing tables.

Invariants:
    - All models inherit from Base (db/base.py)
    - CityPrice and UserCategoryAdjustment share no foreign key: they meet only on category

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from shipping_pricing.models.city_price import CityPrice  # noqa: F401
from shipping_pricing.models.user_category_adjustment import UserCategoryAdjustment  # noqa: F401
