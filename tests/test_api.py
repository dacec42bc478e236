import pytest

from coffeeshop import main

from conftest import order_line


def latte_id(client) -> int:
    menu = client.get("/menu").json()
    milk = next(category for category in menu["categories"] if category["name"] == "Milk")
    return next(item["id"] for item in milk["items"] if item["name"] == "Latte")


def place_order(client, **overrides):
    payload = {
        "customer_name": "Table 5",
        "order_type": "dine_in",
        "items": [order_line(menu_item_id=latte_id(client), quantity=3, unit_price_cents=8520,
                             notes="extra shot x2; no sugar please")],
    }
    payload.update(overrides)
    return client.post("/orders", json=payload)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_menu_lists_seeded_categories(client):
    response = client.get("/menu")

    assert response.status_code == 200
    categories = response.json()["categories"]
    assert [category["name"] for category in categories] == ["Espresso", "Milk", "Iced", "Seasonal"]
    assert all(category["items"] for category in categories)


def test_create_and_fetch_order(client):
    response = place_order(client)

    assert response.status_code == 201
    body = response.json()
    assert body["queue_number"] == "M01"
    assert body["status"] == "pending"
    assert body["total_cents"] == 25560
    assert body["items"][0]["size"] == "M"
    assert body["items"][0]["sugar_level"] == "normal"

    fetched = client.get(f"/orders/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == body


def test_create_order_records_user_header(client):
    response = client.post(
        "/orders",
        json={"customer_name": "Ann", "order_type": "takeaway", "items": [order_line()]},
        headers={"X-User-Id": "user-7"},
    )
    assert response.status_code == 201
    assert response.json()["user_id"] == "user-7"


@pytest.mark.parametrize(
    "payload",
    [
        {"customer_name": "Table 5", "order_type": "dine_in", "items": []},
        {"customer_name": " ", "order_type": "dine_in", "items": [order_line()]},
        {"customer_name": "Table 5", "order_type": "drive_thru", "items": [order_line()]},
        {"customer_name": "Table 5", "order_type": "dine_in", "items": [order_line(quantity=0)]},
    ],
)
def test_create_order_rejects_invalid_payloads(client, payload):
    assert client.post("/orders", json=payload).status_code == 422
    assert client.get("/orders").json() == []


def test_price_mismatch_rejected_when_verification_enabled(client, monkeypatch):
    monkeypatch.setattr(main.settings, "verify_prices", True)

    response = place_order(client, items=[order_line(menu_item_id=latte_id(client), unit_price_cents=100)])

    assert response.status_code == 400
    assert "Price mismatch" in response.json()["detail"]


def test_get_missing_order_is_404(client):
    assert client.get("/orders/999").status_code == 404
    assert client.get("/orders/999/receipt").status_code == 404


def test_update_status(client):
    order_id = place_order(client).json()["id"]

    response = client.patch(f"/orders/{order_id}/status", json={"status": "ready"})

    assert response.status_code == 200
    assert response.json()["status"] == "ready"
    assert "items" not in response.json()
    assert client.get(f"/orders/{order_id}").json()["status"] == "ready"


def test_update_status_of_missing_order_is_404(client):
    response = client.patch("/orders/99999/status", json={"status": "ready"})
    assert response.status_code == 404


def test_update_status_rejects_unknown_value(client):
    order_id = place_order(client).json()["id"]
    assert client.patch(f"/orders/{order_id}/status", json={"status": "lost"}).status_code == 422


def test_strict_status_flow_returns_conflict(client, monkeypatch):
    monkeypatch.setattr(main.settings, "strict_status_flow", True)
    order_id = place_order(client).json()["id"]

    assert client.patch(f"/orders/{order_id}/status", json={"status": "completed"}).status_code == 409
    assert client.patch(f"/orders/{order_id}/status", json={"status": "cancelled"}).status_code == 200
    assert client.patch(f"/orders/{order_id}/status", json={"status": "pending"}).status_code == 409


def test_list_orders_filters_by_status(client):
    first = place_order(client).json()["id"]
    second = place_order(client, customer_name="Table 6").json()["id"]
    client.patch(f"/orders/{first}/status", json={"status": "preparing"})

    all_orders = client.get("/orders").json()
    assert [order["id"] for order in all_orders] == [second, first]
    assert all(order["items"] for order in all_orders)

    preparing = client.get("/orders", params={"status": "preparing"}).json()
    assert [order["id"] for order in preparing] == [first]
    assert client.get("/orders", params={"limit": 1}).json()[0]["id"] == second


def test_receipt_endpoint(client):
    order_id = place_order(client).json()["id"]

    response = client.get(f"/orders/{order_id}/receipt")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "Token: M01" in response.text
    assert "sweet 50% • extra shot x2 • no sugar please" in response.text


def test_export_orders_csv(client):
    place_order(client)

    response = client.get("/orders/export")

    assert response.status_code == 200
    rows = response.text.strip().splitlines()
    assert rows[0] == "id,queue_number,customer_name,order_type,status,item_count,total_cents,created_at"
    assert rows[1].startswith("1,M01,Table 5,dine_in,pending,3,25560,")


def test_reports_summary(client):
    first = place_order(client).json()["id"]
    place_order(client)
    client.patch(f"/orders/{first}/status", json={"status": "completed"})

    body = client.get("/reports/summary").json()

    assert body["total_orders"] == 2
    assert body["completed_orders"] == 1
    assert body["revenue_cents"] == 25560
    assert body["top_items"] == [{"item_name": "Latte", "quantity": 3, "revenue_cents": 25560}]


def test_reports_summary_rejects_inverted_range(client):
    response = client.get("/reports/summary", params={"start_date": "2026-02-02", "end_date": "2026-02-01"})
    assert response.status_code == 400


def test_access_key_guard(client, monkeypatch):
    monkeypatch.setattr(main.settings, "access_key", "secret")

    assert client.get("/menu").status_code == 401
    assert client.get("/menu", headers={"X-Access-Key": "secret"}).status_code == 200
    assert client.get("/health").status_code == 200
