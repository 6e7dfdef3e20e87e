"""CityPrice Store — verifies base price persistence against a real (SQLite) database.

Invariants:
    - Re-basing is SET-from-baseline: applying the same delta twice is a no-op
    - base_price == default_price + coalesce(last_adjustment_amount, 0) after every write
    - City is case-insensitively unique per category
    - A re-basing that would drive any base price below zero changes nothing
"""

from uuid import uuid4

import pytest

from shipping_pricing.core.domain_types import Category
from shipping_pricing.core.errors import (
    ConflictError, PricingValidationError, ResourceNotFoundError,
)
from shipping_pricing.core.filters import CityPriceFilter
from shipping_pricing.core.pagination import PageRequest
from shipping_pricing.core.pricing_engine import rebase
from shipping_pricing.models.city_price import CityPrice
from shipping_pricing.services.city_price_store import CityPriceStore


@pytest.fixture
def store(test_db):
    return CityPriceStore(test_db)


@pytest.fixture
async def seeded(store):
    """Three copart cities, one iaai city."""
    rows = {}
    for city, category, price in [
        ("Los Angeles", Category.COPART, 100.0),
        ("Houston", Category.COPART, 200.0),
        ("Dallas", Category.COPART, 150.0),
        ("Houston", Category.IAAI, 210.0),
    ]:
        rows[(city, category)] = await store.create(city, category, price)
    return rows


def _assert_baseline_invariant(row):
    assert row.base_price == row.default_price + (row.last_adjustment_amount or 0.0)


# --- create -------------------------------------------------------------------

async def test_create_sets_default_equal_to_base(store):
    row = await store.create("Miami", Category.COPART, 120.0)
    assert row.id is not None
    assert row.default_price == 120.0
    assert row.base_price == 120.0
    assert row.last_adjustment_amount is None
    assert row.last_adjustment_date is None


async def test_create_duplicate_city_is_case_insensitive(store):
    await store.create("Miami", Category.COPART, 120.0)
    with pytest.raises(ConflictError):
        await store.create("MIAMI", Category.COPART, 130.0)


async def test_same_city_allowed_in_other_category(store):
    await store.create("Miami", Category.COPART, 120.0)
    row = await store.create("Miami", Category.IAAI, 130.0)
    assert row.category == "iaai"


# --- reads --------------------------------------------------------------------

async def test_find_one_matches_city_case_insensitively(store, seeded):
    row = await store.find_one("los angeles", Category.COPART)
    assert row is not None
    assert row.city == "Los Angeles"


async def test_find_one_missing_returns_none(store, seeded):
    assert await store.find_one("Los Angeles", Category.MANHEIM) is None


async def test_find_by_filters_search_is_substring(store, seeded):
    rows = await store.find_by_filters(CityPriceFilter(search="hou"))
    assert {(r.city, r.category) for r in rows} == {
        ("Houston", "copart"), ("Houston", "iaai"),
    }


async def test_find_by_filters_category_ordered_by_city(store, seeded):
    rows = await store.find_by_filters(CityPriceFilter(category=Category.COPART))
    assert [r.city for r in rows] == ["Dallas", "Houston", "Los Angeles"]


async def test_paginate_returns_page_and_total(store, seeded):
    rows, total = await store.paginate(
        CityPriceFilter(category=Category.COPART), PageRequest(page=2, limit=2),
    )
    assert total == 3
    assert [r.city for r in rows] == ["Los Angeles"]


async def test_cities_by_category_groups_every_category(store, seeded):
    grouped = await store.cities_by_category()
    assert grouped == {
        "copart": ["Dallas", "Houston", "Los Angeles"],
        "iaai": ["Houston"],
        "manheim": [],
    }


async def test_cities_by_category_single_category(store, seeded):
    assert await store.cities_by_category(Category.IAAI) == {"iaai": ["Houston"]}


# --- adjust_base_price --------------------------------------------------------

async def test_adjust_base_price_is_idempotent(store, seeded):
    await store.adjust_base_price(Category.COPART, "Los Angeles", 200.0)
    await store.adjust_base_price(Category.COPART, "Los Angeles", 200.0)

    row = await store.find_one("Los Angeles", Category.COPART)
    assert row.default_price == 100.0
    assert row.base_price == 300.0
    assert row.last_adjustment_amount == 200.0
    assert row.last_adjustment_date is not None


async def test_adjust_base_price_category_wide(store, seeded):
    count = await store.adjust_base_price(Category.COPART, None, 10.0)
    assert count == 3

    rows = await store.find_by_filters(CityPriceFilter(category=Category.COPART))
    assert [r.base_price for r in rows] == [160.0, 210.0, 110.0]
    untouched = await store.find_one("Houston", Category.IAAI)
    assert untouched.base_price == 210.0


async def test_adjust_base_price_below_zero_changes_nothing(store, seeded):
    # Los Angeles would drop to -50, the others stay positive
    with pytest.raises(PricingValidationError) as exc:
        await store.adjust_base_price(Category.COPART, None, -150.0)
    assert exc.value.field == "adjustment_amount"

    rows = await store.find_by_filters(CityPriceFilter(category=Category.COPART))
    assert [r.base_price for r in rows] == [150.0, 200.0, 100.0]
    assert all(r.last_adjustment_amount is None for r in rows)


async def test_adjust_base_price_no_match_is_not_found(store, seeded):
    with pytest.raises(ResourceNotFoundError):
        await store.adjust_base_price(Category.MANHEIM, None, 10.0)


# --- update -------------------------------------------------------------------

async def test_update_base_price_declares_new_baseline(store, seeded):
    await store.adjust_base_price(Category.COPART, "Los Angeles", 200.0)

    row = await store.update(
        CityPriceFilter(city="Los Angeles", category=Category.COPART),
        {"base_price": 250.0},
    )
    assert row.default_price == 250.0
    assert row.base_price == 250.0
    assert row.last_adjustment_amount == 0.0
    _assert_baseline_invariant(row)


async def test_update_renames_city(store, seeded):
    row = await store.update(
        CityPriceFilter(city="dallas", category=Category.COPART), {"city": "Fort Worth"},
    )
    assert row.city == "Fort Worth"
    assert row.base_price == 150.0


async def test_update_rename_onto_existing_city_conflicts(store, seeded):
    with pytest.raises(ConflictError):
        await store.update(
            CityPriceFilter(city="Dallas", category=Category.COPART), {"city": "houston"},
        )


async def test_update_ambiguous_filter_is_rejected(store, seeded):
    with pytest.raises(PricingValidationError, match="more than one"):
        await store.update(CityPriceFilter(category=Category.COPART), {"base_price": 1.0})


async def test_update_without_selector_is_rejected(store, seeded):
    with pytest.raises(PricingValidationError):
        await store.update(CityPriceFilter(), {"base_price": 1.0})


async def test_update_missing_row_is_not_found(store, seeded):
    with pytest.raises(ResourceNotFoundError):
        await store.update(
            CityPriceFilter(city="Boston", category=Category.COPART), {"base_price": 1.0},
        )


async def test_update_without_changes_is_rejected(store, seeded):
    with pytest.raises(PricingValidationError):
        await store.update(
            CityPriceFilter(city="Dallas", category=Category.COPART), {},
        )


# --- bulk_update_default_price ------------------------------------------------

async def test_bulk_default_price_keeps_last_delta(store, seeded):
    await store.adjust_base_price(Category.COPART, "Los Angeles", 200.0)

    count = await store.bulk_update_default_price(
        CityPriceFilter(category=Category.COPART), 120.0,
    )
    assert count == 3

    la = await store.find_one("Los Angeles", Category.COPART)
    assert la.default_price == 120.0
    assert la.base_price == 320.0
    dallas = await store.find_one("Dallas", Category.COPART)
    assert dallas.base_price == 120.0
    for row in await store.find_by_filters(CityPriceFilter()):
        _assert_baseline_invariant(row)


async def test_bulk_default_price_below_zero_with_delta_is_rejected(store, seeded):
    await store.adjust_base_price(Category.IAAI, "Houston", -50.0)
    with pytest.raises(PricingValidationError):
        await store.bulk_update_default_price(
            CityPriceFilter(city="Houston", category=Category.IAAI), 10.0,
        )
    row = await store.find_one("Houston", Category.IAAI)
    assert row.default_price == 210.0


# --- remove -------------------------------------------------------------------

async def test_remove_deletes_row(store, seeded):
    row = seeded[("Dallas", Category.COPART)]
    await store.remove(row.id)
    assert await store.get(row.id) is None


async def test_remove_unknown_id_is_not_found(store):
    with pytest.raises(ResourceNotFoundError):
        await store.remove(uuid4())


def test_rebase_renders_as_sql_over_columns():
    expr = rebase(CityPrice.default_price, 25.0)
    assert "city_prices.default_price +" in str(expr)
