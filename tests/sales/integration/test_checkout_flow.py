"""End-to-end checkout: cart, order, payment webhook, invoice."""


def customer(customer_id="cust-001"):
    return {"X-Customer-Id": customer_id}


def test_checkout_to_invoice(client, gateway, admin_headers):
    client.post("/cart/items", json={"product_id": "prod-a", "quantity": 2}, headers=customer())
    client.post("/cart/items", json={"product_id": "prod-b", "quantity": 1}, headers=customer())

    order = client.post("/orders", headers=customer()).json()
    assert order["total"] == "25.50"
    order_id = order["order_id"]

    intent = client.post(f"/payments/intents/{order_id}", headers=customer()).json()
    payload = gateway.build_event(
        "payment_intent.succeeded",
        intent_id=intent["intent_id"],
        order_id=order_id,
        amount=intent["amount"],
    )
    ack = client.post("/payments/webhook", content=payload, headers={"X-Gateway-Signature": gateway.sign(payload)})
    assert ack.json()["result"] == "applied"

    assert client.get(f"/orders/{order_id}", headers=customer()).json()["status"] == "paid"

    first = client.get(f"/invoices/{order_id}", headers=customer()).json()
    second = client.get(f"/invoices/{order_id}", headers=customer()).json()
    assert first == second
    assert first["invoice_number"].startswith("INV-")
    assert first["total"] == "25.50"

    for status in ("shipped", "delivered"):
        response = client.patch(f"/orders/{order_id}/status", json={"status": status}, headers=admin_headers)
        assert response.json()["status"] == status

    assert client.get(f"/invoices/{order_id}", headers=customer()).json() == first


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "domain": "sales", "gateway": "FakeGateway"}
