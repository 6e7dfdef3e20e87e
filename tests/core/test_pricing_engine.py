"""Pricing Engine — verifies composition of base prices and adjustment components.

Invariants:
    - effective_price = base_price + user + admin, no rounding or clamping
    - Missing adjustment composes as zeros with adjusted_by None
    - rebase is a SET from default_price, never an increment
    - merge_by_category joins adjustments by category only
"""

from datetime import datetime, timezone
from types import SimpleNamespace

from shipping_pricing.core.domain_types import Category
from shipping_pricing.core.pricing_engine import (
    adjustment_view, build_effective_price, effective_price,
    merge_by_category, rebase, total_adjustment,
)

ADJUSTED_AT = datetime(2026, 1, 15, tzinfo=timezone.utc)


def _city_price(city="Los Angeles", category="copart", default=100.0, base=300.0,
                last_amount=200.0, last_date=None):
    return SimpleNamespace(
        city=city, category=category, default_price=default, base_price=base,
        last_adjustment_amount=last_amount, last_adjustment_date=last_date,
    )


def _adjustment(category="copart", user=50.0, admin=20.0, adjusted_by="admin",
                user_id="user-1"):
    return SimpleNamespace(
        user_id=user_id, category=category,
        user_adjustment_amount=user, admin_adjustment_amount=admin,
        adjusted_by=adjusted_by, updated_at=ADJUSTED_AT,
    )


# --- rebase -------------------------------------------------------------------

def test_rebase_sets_from_default_price():
    assert rebase(100.0, 200.0) == 300.0


def test_rebase_is_idempotent():
    once = rebase(100.0, 200.0)
    assert rebase(100.0, 200.0) == once


def test_rebase_accepts_negative_delta():
    assert rebase(100.0, -30.0) == 70.0


# --- totals -------------------------------------------------------------------

def test_total_adjustment_sums_both_components():
    assert total_adjustment(_adjustment(user=50.0, admin=20.0)) == 70.0


def test_total_adjustment_of_missing_row_is_zero():
    assert total_adjustment(None) == 0.0


def test_effective_price_composes_base_and_components():
    assert effective_price(_city_price(base=300.0), _adjustment()) == 370.0


def test_effective_price_is_not_clamped_below_zero():
    price = effective_price(_city_price(base=10.0), _adjustment(user=-30.0, admin=0.0))
    assert price == -20.0


# --- views --------------------------------------------------------------------

def test_adjustment_view_of_missing_row_is_zero_shape():
    view = adjustment_view(None, "user-1", Category.IAAI)
    assert view.user == "user-1"
    assert view.category == "iaai"
    assert view.user_adjustment_amount == 0.0
    assert view.admin_adjustment_amount == 0.0
    assert view.total_adjustment_amount == 0.0
    assert view.adjusted_by is None
    assert view.updated_at is None


def test_adjustment_view_carries_row_fields():
    view = adjustment_view(_adjustment(), "user-1", "copart")
    assert view.total_adjustment_amount == 70.0
    assert view.adjusted_by == "admin"
    assert view.to_dict()["updated_at"] == ADJUSTED_AT


def test_build_effective_price_los_angeles_scenario():
    price = build_effective_price(_city_price(), _adjustment())
    assert price.default_price == 100.0
    assert price.base_price == 300.0
    assert price.base_last_adjustment_amount == 200.0
    assert price.total_adjustment_amount == 70.0
    assert price.effective_price == 370.0
    assert price.adjusted_by == "admin"


def test_build_effective_price_without_adjustment():
    price = build_effective_price(_city_price(base=120.0), None)
    assert price.effective_price == 120.0
    assert price.adjusted_by is None


# --- merge --------------------------------------------------------------------

def test_merge_by_category_applies_each_category_adjustment():
    city_prices = [
        _city_price("Houston", "copart", base=200.0),
        _city_price("Houston", "iaai", base=210.0),
        _city_price("Dallas", "copart", base=150.0),
        _city_price("Dallas", "manheim", base=180.0),
    ]
    adjustments = [
        _adjustment("copart", user=10.0, admin=5.0),
        _adjustment("iaai", user=-20.0, admin=0.0),
    ]

    merged = merge_by_category(city_prices, adjustments)

    assert [p.effective_price for p in merged] == [215.0, 190.0, 165.0, 180.0]
    assert merged[3].adjusted_by is None


def test_merge_by_category_accepts_enum_categories():
    merged = merge_by_category(
        [_city_price(category=Category.MANHEIM, base=100.0)],
        [_adjustment(category="manheim", user=1.0, admin=2.0)],
    )
    assert merged[0].category == "manheim"
    assert merged[0].effective_price == 103.0


def test_merge_by_category_empty_inputs():
    assert merge_by_category([], [_adjustment()]) == []


def test_build_effective_price_matches_effective_price():
    city_price, adjustment = _city_price(base=199.5), _adjustment(user=0.25, admin=-10.0)
    assert (
        build_effective_price(city_price, adjustment).effective_price
        == effective_price(city_price, adjustment)
    )
