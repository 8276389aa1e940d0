from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tiffin.api import deps
from tiffin.main import app, create_app

from tests.conftest import OTHER_USER, TODAY, TOMORROW, USER

API = "/api/v1"
AUTH = {"X-User-Id": USER, "X-User-Phone": "+919800000000"}


@pytest.fixture
def client(db_session, clock, notifier, catalog):
    def override_db():
        yield db_session

    app.dependency_overrides[deps.get_db] = override_db
    app.dependency_overrides[deps.get_clock] = lambda: clock
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def subscribed(client, catalog):
    response = client.post(
        f"{API}/subscriptions",
        json={"package_id": catalog.premium.id, "address_id": catalog.home.id, "start_date": TODAY.isoformat()},
        headers=AUTH,
    )
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_missing_identity_is_401(client):
    response = client.get(f"{API}/subscriptions/active")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"


def test_malformed_body_is_400(client):
    response = client.post(f"{API}/subscriptions", json={"package_id": "x"}, headers=AUTH)
    assert response.status_code == 400
    body = response.json()["error"]
    assert body["code"] == "VALIDATION_ERROR"
    assert "start_date" in body["details"]["field_errors"]


def test_subscription_lifecycle(client, catalog, subscribed):
    assert subscribed["end_date"] == "2025-01-21"
    assert subscribed["days_remaining"] == 6
    assert subscribed["package"]["name"] == "Premium"

    duplicate = client.post(
        f"{API}/subscriptions",
        json={"package_id": catalog.basic.id, "address_id": catalog.home.id, "start_date": TODAY.isoformat()},
        headers=AUTH,
    )
    assert duplicate.status_code == 422
    assert duplicate.json()["error"]["code"] == "CONFLICT"

    active = client.get(f"{API}/subscriptions/active", headers=AUTH)
    assert active.json()["id"] == subscribed["id"]

    cancelled = client.post(f"{API}/subscriptions/{subscribed['id']}/cancel", headers=AUTH)
    assert cancelled.json()["status"] == "cancelled"

    history = client.get(f"{API}/subscriptions/history", headers=AUTH)
    assert [s["status"] for s in history.json()] == ["cancelled"]


def test_unknown_package_is_404(client):
    response = client.post(
        f"{API}/subscriptions",
        json={"package_id": "nope", "address_id": "nope", "start_date": TODAY.isoformat()},
        headers=AUTH,
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


def test_schedule_and_pause(client, clock, subscribed):
    schedule = client.get(f"{API}/meals/schedule", headers=AUTH).json()
    assert len(schedule) == 6

    paused = client.post(
        f"{API}/meals/pause", json={"meal_date": TOMORROW.isoformat(), "meal_type": "lunch"}, headers=AUTH
    )
    assert paused.status_code == 200
    lunch = [m for m in paused.json() if m["service_date"] == TOMORROW.isoformat() and m["item_type"] == "lunch"]
    assert lunch[0]["is_paused"] is True

    again = client.post(
        f"{API}/meals/pause", json={"meal_date": TOMORROW.isoformat(), "meal_type": "lunch"}, headers=AUTH
    )
    assert again.status_code == 422
    assert again.json()["error"]["code"] == "ALREADY_PAUSED"

    clock.at(20, 0)
    late = client.post(
        f"{API}/meals/pause", json={"meal_date": TODAY.isoformat(), "meal_type": "all"}, headers=AUTH
    )
    assert late.status_code == 422
    assert late.json()["error"]["code"] == "DEADLINE_EXCEEDED"

    pauses = client.get(f"{API}/meals/pauses", headers=AUTH).json()
    assert [p["action"] for p in pauses] == ["pause"]


def test_pause_without_subscription_is_422(client):
    response = client.post(
        f"{API}/meals/pause", json={"meal_date": TOMORROW.isoformat(), "meal_type": "lunch"}, headers=AUTH
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "NO_ACTIVE_SUBSCRIPTION"


def test_grouping_round_trip(client, catalog, subscribed):
    schedule = client.get(f"{API}/meals/schedule", headers=AUTH).json()
    ids = [m["id"] for m in schedule if m["service_date"] == TOMORROW.isoformat()][:2]

    single = client.post(
        f"{API}/deliveries/groups",
        json={"service_date": TOMORROW.isoformat(), "delivery_slot_id": catalog.late_lunch.id,
              "meal_instance_ids": ids[:1]},
        headers=AUTH,
    )
    assert single.status_code == 400

    created = client.post(
        f"{API}/deliveries/groups",
        json={"service_date": TOMORROW.isoformat(), "delivery_slot_id": catalog.late_lunch.id,
              "meal_instance_ids": ids},
        headers=AUTH,
    )
    assert created.status_code == 201
    group = created.json()
    assert sorted(group["meal_instance_ids"]) == sorted(ids)
    assert group["delivery_slot"]["name"] == "Late lunch"

    forbidden = client.delete(f"{API}/deliveries/groups/{group['id']}", headers={"X-User-Id": OTHER_USER})
    assert forbidden.status_code == 403

    removed = client.delete(f"{API}/deliveries/groups/{group['id']}", headers=AUTH)
    assert removed.status_code == 200
    assert client.get(f"{API}/deliveries/groups", headers=AUTH).json() == []


def test_wallet_and_orders(client, catalog):
    purchased = client.post(
        f"{API}/curry/wallets/purchase", json={"token_package_id": catalog.veg_tokens.id}, headers=AUTH
    )
    assert purchased.status_code == 200
    assert purchased.json()["remaining_tokens"] == 10
    assert purchased.json()["is_expired"] is False

    order = client.post(
        f"{API}/curry/orders",
        json={"diet_type": "veg", "cuisine_type": "north_indian", "order_date": TOMORROW.isoformat()},
        headers=AUTH,
    )
    assert order.status_code == 201
    order_id = order.json()["id"]
    assert order.json()["delivery_slot"]["slot_type"] == "afternoon"

    duplicate = client.post(
        f"{API}/curry/orders",
        json={"diet_type": "veg", "cuisine_type": "south_indian", "order_date": TOMORROW.isoformat()},
        headers=AUTH,
    )
    assert duplicate.status_code == 422

    open_orders = client.get(f"{API}/curry/orders", params={"status": "ordered"}, headers=AUTH).json()
    assert [o["id"] for o in open_orders] == [order_id]

    cancelled = client.post(f"{API}/curry/orders/{order_id}/cancel", headers=AUTH)
    assert cancelled.json()["status"] == "cancelled"

    wallets = client.get(f"{API}/curry/wallets", headers=AUTH).json()
    assert wallets[0]["used_tokens"] == 0


def test_upgrade_endpoints(client, subscribed):
    applied = client.post(
        f"{API}/upgrades",
        json={"upgrade_type": "veg_to_nonveg", "scope": "day", "start_date": "2025-01-15", "end_date": "2025-01-17"},
        headers=AUTH,
    )
    assert applied.status_code == 201
    assert Decimal(str(applied.json()["price"])) == Decimal("300")

    active = client.get(f"{API}/upgrades/active", headers=AUTH).json()
    assert [u["id"] for u in active] == [applied.json()["id"]]

    started = client.delete(f"{API}/upgrades/{applied.json()['id']}", headers=AUTH)
    assert started.status_code == 422


def test_lifespan_creates_tables_outside_production():
    with patch("tiffin.main.init_db") as init_db:
        with TestClient(create_app()) as started:
            assert started.get(f"{API}/health").status_code == 200
    init_db.assert_called_once_with()


def test_lifespan_skips_table_creation_in_production():
    production_app = create_app()
    with patch("tiffin.main.settings", SimpleNamespace(is_production=lambda: True)), \
            patch("tiffin.main.init_db") as init_db:
        with TestClient(production_app):
            pass
    init_db.assert_not_called()
