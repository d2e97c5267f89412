"""
Special order API tests
"""
import pytest


async def open_special(client, **body):
    payload = {"item_name": "Custom oak", "family_name": "Doe", "service_date": "2024-01-20"}
    payload.update(body)
    r = await client.post("/special-orders", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_special_order_requires_service_date(client):
    r = await client.post("/special-orders", json={"item_name": "Custom oak", "family_name": "Doe"})
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_special_orders_triaged_by_service_date(client):
    relaxed = await open_special(client, family_name="Adams", service_date="2024-02-01")
    urgent = await open_special(client, family_name="Baker", service_date="2024-01-16")
    late = await open_special(client, family_name="Clark", service_date="2024-01-09")

    r = await client.get("/special-orders", params={"as_of": "2024-01-10"})
    rows = r.json()
    assert [o["id"] for o in rows] == [late["id"], urgent["id"], relaxed["id"]]
    assert [o["urgency"] for o in rows] == ["LATE", "URGENT", "ON_TIME"]
    assert rows[1]["days_remaining"] == 6


@pytest.mark.asyncio
async def test_special_order_arrival_leaves_stock_alone(client, make_item):
    item = await make_item(on_hand=2)
    order = await open_special(client)

    r = await client.post(f"/special-orders/{order['id']}/status", json={"status": "SHIPPED"})
    assert r.status_code == 200, r.text
    r = await client.post(
        f"/special-orders/{order['id']}/status",
        json={"status": "ARRIVED", "actor": "J.Smith", "arrival_date": "2024-01-18"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["arrived_marked_by"] == "J.Smith"
    assert r.json()["actual_arrival_date"] == "2024-01-18"

    r = await client.post(f"/special-orders/{order['id']}/status", json={"status": "PENDING"})
    assert r.status_code == 409

    r = await client.get(f"/items/{item['id']}")
    assert r.json()["on_hand"] == 2


@pytest.mark.asyncio
async def test_special_order_status_unknown_is_404(client):
    r = await client.post("/special-orders/missing/status", json={"status": "SHIPPED"})
    assert r.status_code == 404
