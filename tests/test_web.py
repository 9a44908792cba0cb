from datetime import datetime, timedelta, timezone
from uuid import uuid4

from orderdesk.errors import StoreUnavailableError


def _seed(store, quantity=1, status="Created", created=None):
    created = created or datetime.now(timezone.utc) - timedelta(hours=1)
    return store.seed_order(status, created, [(store.mailbox, quantity)])


def _order_body(store, quantity=2, **overrides):
    body = {
        "resellerId": str(uuid4()),
        "customerId": str(uuid4()),
        "createdDate": "2024-05-01T10:00:00+00:00",
        "items": [
            {"productId": str(store.mailbox), "serviceId": str(store.email_service), "quantity": quantity}
        ],
    }
    body.update(overrides)
    return body


def test_list_orders(client, store):
    order_id = _seed(store, 3)
    resp = client.get("/orders")

    assert resp.status_code == 200
    [order] = resp.get_json()
    assert order["id"] == str(order_id)
    assert order["statusName"] == "Created"
    assert order["itemCount"] == 1
    assert order["totalCost"] == "2.4"
    assert order["totalPrice"] == "2.7"


def test_get_order(client, store):
    order_id = _seed(store, 2)
    resp = client.get(f"/orders/{order_id}")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["items"][0]["productName"] == "100GB Mailbox"
    assert body["items"][0]["quantity"] == 2
    assert body["totalPrice"] == "1.8"


def test_get_order_not_found(client):
    assert client.get(f"/orders/{uuid4()}").status_code == 404


def test_get_order_bad_id(client):
    resp = client.get("/orders/not-a-uuid")
    assert resp.status_code == 400
    assert resp.get_json()["issues"][0]["code"] == "INVALID_ID"


def test_list_by_status_case_insensitive(client, store):
    failed = _seed(store, status="Failed")
    _seed(store)

    resp = client.get("/orders/status/failed")

    assert resp.status_code == 200
    assert [o["id"] for o in resp.get_json()] == [str(failed)]


def test_list_by_unknown_status_is_empty(client):
    resp = client.get("/orders/status/Nope")
    assert resp.status_code == 200
    assert resp.get_json() == []


def test_update_status_with_plain_string_body(client, store):
    store.add_status("InProgress")
    order_id = _seed(store)

    resp = client.patch(f"/orders/{order_id}/status", json="InProgress")

    assert resp.status_code == 200
    assert "InProgress" in resp.get_json()["message"]
    assert client.get(f"/orders/{order_id}").get_json()["statusName"] == "InProgress"


def test_update_status_with_object_body(client, store):
    store.add_status("Completed")
    order_id = _seed(store)
    resp = client.patch(f"/orders/{order_id}/status", json={"status": "Completed"})
    assert resp.status_code == 200


def test_update_status_unknown_order(client, store):
    store.add_status("Completed")
    resp = client.patch(f"/orders/{uuid4()}/status", json="Completed")
    assert resp.status_code == 404
    assert "does not exist" in resp.get_json()["error"]


def test_update_status_unknown_status(client, store):
    order_id = _seed(store)
    resp = client.patch(f"/orders/{order_id}/status", json="NoSuchStatus")
    assert resp.status_code == 400
    assert "NoSuchStatus" in resp.get_json()["error"]


def test_update_status_missing_body(client, store):
    order_id = _seed(store)
    assert client.patch(f"/orders/{order_id}/status").status_code == 400


def test_add_order(client, store):
    resp = client.post("/orders", json=_order_body(store))

    assert resp.status_code == 201
    order_id = resp.get_json()["orderId"]
    assert resp.headers["Location"].endswith(f"/orders/{order_id}")

    detail = client.get(f"/orders/{order_id}").get_json()
    assert detail["statusName"] == "Created"
    assert detail["totalCost"] == "1.6"


def test_add_order_reports_every_problem(client, store):
    body = _order_body(store, quantity=0, createdDate=(datetime.now(timezone.utc) + timedelta(days=1)).isoformat())
    resp = client.post("/orders", json=body)

    assert resp.status_code == 400
    codes = {i["code"] for i in resp.get_json()["issues"]}
    assert codes == {"INVALID_QUANTITY", "FUTURE_DATE"}
    assert store.orders == {}


def test_add_order_with_oversized_quantity_is_a_client_error(client, store):
    resp = client.post("/orders", json=_order_body(store, quantity=2**40))

    assert resp.status_code == 400
    assert [i["code"] for i in resp.get_json()["issues"]] == ["INVALID_QUANTITY"]
    assert store.writes == 0


def test_add_order_without_items(client, store):
    resp = client.post("/orders", json=_order_body(store, items=[]))
    assert resp.status_code == 400
    assert resp.get_json()["issues"][0]["code"] == "EMPTY_ITEMS"


def test_add_order_malformed_fields(client, store):
    body = _order_body(store, resellerId="x")
    body["items"][0]["quantity"] = "two"
    resp = client.post("/orders", json=body)

    assert resp.status_code == 400
    fields = {i["field"] for i in resp.get_json()["issues"]}
    assert fields == {"resellerId", "items[0].quantity"}


def test_add_order_without_created_status(client, store):
    del store.statuses[store.created_id]
    resp = client.post("/orders", json=_order_body(store))
    assert resp.status_code == 500
    assert store.orders == {}


def test_monthly_profits(client, store):
    store.add_status("Completed")
    store.seed_order("Completed", datetime(2023, 1, 15, tzinfo=timezone.utc), [(store.mailbox, 2)])
    store.seed_order("Completed", datetime(2023, 2, 5, tzinfo=timezone.utc), [(store.mailbox, 3)])

    resp = client.get("/orders/profits/monthly")

    assert resp.status_code == 200
    assert resp.get_json() == [
        {"year": 2023, "month": 2, "totalProfit": "0.3"},
        {"year": 2023, "month": 1, "totalProfit": "0.2"},
    ]


def test_store_failure_is_503(client, store, monkeypatch):
    def broken():
        raise StoreUnavailableError("list_orders")

    monkeypatch.setattr(store, "list_orders", broken)
    resp = client.get("/orders")
    assert resp.status_code == 503
