import json

from conftest import order_payload


def test_guest_places_order(client):
    response = client.post("/api/orders", json=order_payload(status="delivered"))
    assert response.status_code == 201
    order = response.json()
    assert order["id"] > 0
    assert order["status"] == "pending"
    assert order["totalAmount"] == "90.00"
    assert order["customerName"] == "Juan Dela Cruz"
    assert len(order["items"]) == 2
    assert order["items"][0] == {"id": 2, "name": "Butter Croissant", "price": "45.00", "quantity": 1}


def test_admin_sees_newest_order_first(client, admin_client):
    first = client.post("/api/orders", json=order_payload()).json()
    second = client.post("/api/orders", json=order_payload(customerName="Maria")).json()

    orders = admin_client.get("/api/orders").json()
    assert [order["id"] for order in orders[:2]] == [second["id"], first["id"]]
    assert orders[0]["status"] == "pending"
    assert isinstance(orders[0]["items"], list)


def test_items_accepted_as_json_string(client):
    payload = order_payload()
    payload["items"] = json.dumps(payload["items"])
    response = client.post("/api/orders", json=payload)
    assert response.status_code == 201
    assert isinstance(response.json()["items"], list)


def test_order_with_coordinates(client):
    response = client.post("/api/orders", json=order_payload(
        deliveryLatitude="14.599512", deliveryLongitude="120.984222",
    ))
    assert response.status_code == 201
    order = response.json()
    assert order["deliveryLatitude"] == "14.599512"
    assert order["deliveryLongitude"] == "120.984222"


def test_order_validation(client):
    response = client.post("/api/orders", json=order_payload(totalAmount="10.00"))
    assert response.status_code == 400
    assert "totalAmount" in response.json()["detail"][0]["message"]

    assert client.post("/api/orders", json=order_payload(items=[], totalAmount="0.00")).status_code == 400
    assert client.post("/api/orders", json=order_payload(paymentMethod="card")).status_code == 400
    assert client.post("/api/orders", json=order_payload(customerName="")).status_code == 400
    assert client.post("/api/orders", json=order_payload(items="not json")).status_code == 400

    bad_quantity = order_payload(
        items=[{"id": 1, "name": "Pandesal", "price": "5.00", "quantity": 0}], totalAmount="0.00",
    )
    assert client.post("/api/orders", json=bad_quantity).status_code == 400


def test_order_reads_require_admin(client):
    client.post("/api/orders", json=order_payload())
    assert client.get("/api/orders").status_code == 401
    assert client.get("/api/orders/1").status_code == 401
    assert client.put("/api/orders/1/status", json={"status": "accepted"}).status_code == 401


def test_get_single_order(client, admin_client):
    order = client.post("/api/orders", json=order_payload()).json()
    response = admin_client.get(f"/api/orders/{order['id']}")
    assert response.status_code == 200
    assert response.json()["totalAmount"] == "90.00"
    assert admin_client.get("/api/orders/999").status_code == 404


def test_update_order_status(client, admin_client):
    order = client.post("/api/orders", json=order_payload()).json()

    for status in ("accepted", "preparing", "ready", "delivered"):
        response = admin_client.put(f"/api/orders/{order['id']}/status", json={"status": status})
        assert response.status_code == 200
        assert response.json()["status"] == status

    # no transition rules are enforced on the server
    response = admin_client.put(f"/api/orders/{order['id']}/status", json={"status": "pending"})
    assert response.json()["status"] == "pending"

    response = admin_client.put("/api/orders/999/status", json={"status": "accepted"})
    assert response.status_code == 404
    response = admin_client.put(f"/api/orders/{order['id']}/status", json={"status": ""})
    assert response.status_code == 400
