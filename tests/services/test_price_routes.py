"""Adjustment, Effective Price, Public & Health Routes — verifies role-aware reads/writes over HTTP.

Invariants:
    - userId is honoured for admins only; users always act on themselves
    - Missing adjustments read as zero, never 404
    - /prices/{city}/{category} is 404 only when the city price is missing
    - /public/cities needs no identity
"""

import pytest

BASE = "/api/v1/shippings"


@pytest.fixture
async def los_angeles(client, admin_headers):
    await client.post(
        BASE, json={"city": "Los Angeles", "category": "copart", "base_price": 100},
        headers=admin_headers,
    )
    await client.patch(
        f"{BASE}/adjust-base-price",
        json={"category": "copart", "city": "Los Angeles", "adjustment_amount": 200},
        headers=admin_headers,
    )


# --- adjustments --------------------------------------------------------------

async def test_user_adjust_price(client, user_headers):
    res = await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 50},
        headers=user_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["user"] == "user-1"
    assert body["user_adjustment_amount"] == 50.0
    assert body["admin_adjustment_amount"] == 0.0
    assert body["adjusted_by"] == "user"


async def test_user_cannot_target_another_user(client, user_headers, make_headers):
    await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 50, "userId": "user-2"},
        headers=user_headers,
    )
    res = await client.get(
        f"{BASE}/adjustment", params={"category": "copart"},
        headers=make_headers("user-2"),
    )
    assert res.json()["total_adjustment_amount"] == 0.0


async def test_admin_adjusts_for_target(client, user_headers, admin_headers):
    await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 50},
        headers=user_headers,
    )
    res = await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 20, "userId": "user-1"},
        headers=admin_headers,
    )
    body = res.json()
    assert body["user"] == "user-1"
    assert body["user_adjustment_amount"] == 50.0
    assert body["admin_adjustment_amount"] == 20.0
    assert body["total_adjustment_amount"] == 70.0
    assert body["adjusted_by"] == "admin"


async def test_adjust_price_without_identity_returns_401(client):
    res = await client.patch(
        f"{BASE}/adjust-price", json={"category": "copart", "adjustment_amount": 5},
    )
    assert res.status_code == 401


async def test_adjust_price_unknown_category_returns_400(client, user_headers):
    res = await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "ebay", "adjustment_amount": 5},
        headers=user_headers,
    )
    assert res.status_code == 400


async def test_get_adjustment_missing_is_zero(client, user_headers):
    res = await client.get(
        f"{BASE}/adjustment", params={"category": "iaai"}, headers=user_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["total_adjustment_amount"] == 0.0
    assert body["adjusted_by"] is None


async def test_get_adjustment_requires_category(client, user_headers):
    res = await client.get(f"{BASE}/adjustment", headers=user_headers)
    assert res.status_code == 400


async def test_admin_lists_all_adjustments(client, admin_headers, make_headers):
    for user, category in [("user-1", "copart"), ("user-2", "iaai")]:
        await client.patch(
            f"{BASE}/adjust-price",
            json={"category": category, "adjustment_amount": 1},
            headers=make_headers(user),
        )

    res = await client.get(f"{BASE}/adjustments", headers=admin_headers)

    assert [(a["user"], a["category"]) for a in res.json()] == [
        ("user-1", "copart"), ("user-2", "iaai"),
    ]


async def test_user_lists_own_adjustments_zero_filled(client, user_headers):
    res = await client.get(f"{BASE}/adjustments", headers=user_headers)
    assert [a["category"] for a in res.json()] == ["copart", "iaai", "manheim"]
    assert all(a["user"] == "user-1" for a in res.json())


# --- effective prices ---------------------------------------------------------

async def test_effective_price_los_angeles(client, user_headers, admin_headers, los_angeles):
    await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 50},
        headers=user_headers,
    )
    await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 20, "userId": "user-1"},
        headers=admin_headers,
    )

    res = await client.get(f"{BASE}/prices/Los Angeles/copart", headers=user_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["base_price"] == 300.0
    assert body["total_adjustment_amount"] == 70.0
    assert body["effective_price"] == 370.0


async def test_admin_reads_price_as_target(client, user_headers, admin_headers, los_angeles):
    await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 50},
        headers=user_headers,
    )
    own = await client.get(f"{BASE}/prices/Los Angeles/copart", headers=admin_headers)
    target = await client.get(
        f"{BASE}/prices/Los Angeles/copart", params={"userId": "user-1"},
        headers=admin_headers,
    )
    assert own.json()["effective_price"] == 300.0
    assert target.json()["effective_price"] == 350.0


async def test_effective_price_missing_city_returns_404(client, user_headers):
    res = await client.get(f"{BASE}/prices/Nowhere/copart", headers=user_headers)
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_list_prices(client, user_headers, los_angeles):
    res = await client.get(f"{BASE}/prices", headers=user_headers)
    assert res.status_code == 200
    [price] = res.json()
    assert price["city"] == "Los Angeles"
    assert price["effective_price"] == 300.0
    assert price["adjusted_by"] is None


async def test_user_cannot_read_another_users_prices(
    client, user_headers, make_headers, los_angeles,
):
    await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 50},
        headers=make_headers("user-2"),
    )

    listed = await client.get(
        f"{BASE}/prices", params={"userId": "user-2"}, headers=user_headers,
    )
    single = await client.get(
        f"{BASE}/prices/Los Angeles/copart", params={"userId": "user-2"},
        headers=user_headers,
    )

    assert [p["effective_price"] for p in listed.json()] == [300.0]
    assert single.json()["effective_price"] == 300.0
    assert single.json()["user_adjustment_amount"] == 0.0


async def test_oversized_adjustments_are_rejected(
    client, user_headers, admin_headers, los_angeles,
):
    user_write = await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 1e308},
        headers=user_headers,
    )
    admin_write = await client.patch(
        f"{BASE}/adjust-price",
        json={"category": "copart", "adjustment_amount": 1e308, "userId": "user-1"},
        headers=admin_headers,
    )
    assert user_write.status_code == 400
    assert admin_write.status_code == 400

    res = await client.get(f"{BASE}/prices/Los Angeles/copart", headers=user_headers)
    assert res.json()["effective_price"] == 300.0


async def test_user_id_wider_than_column_returns_400(client, make_headers):
    res = await client.get(
        f"{BASE}/adjustment", params={"category": "copart"},
        headers=make_headers("u" * 65),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_list_prices_paginated(client, user_headers, los_angeles):
    res = await client.get(
        f"{BASE}/prices/paginated", params={"search": "angel"}, headers=user_headers,
    )
    body = res.json()
    assert body["meta"]["total_items"] == 1
    assert body["data"][0]["city"] == "Los Angeles"


# --- public & health ----------------------------------------------------------

async def test_public_cities_needs_no_identity(client, los_angeles):
    res = await client.get("/api/v1/public/cities")
    assert res.status_code == 200
    assert res.json() == {"copart": ["Los Angeles"], "iaai": [], "manheim": []}


async def test_public_cities_single_category(client, los_angeles):
    res = await client.get("/api/v1/public/cities", params={"category": "copart"})
    assert res.json() == {"copart": ["Los Angeles"]}


async def test_health_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["service"] == "shipping-pricing-api"


async def test_health_readiness(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["status"] == "ready"
