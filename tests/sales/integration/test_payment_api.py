"""Integration tests for payment intents and gateway webhooks via TestClient."""

import pytest


def customer(customer_id="cust-001"):
    return {"X-Customer-Id": customer_id}


@pytest.fixture()
def order_id(client):
    client.post("/cart/items", json={"product_id": "prod-a", "quantity": 2}, headers=customer())
    client.post("/cart/items", json={"product_id": "prod-b", "quantity": 1}, headers=customer())
    return client.post("/orders", headers=customer()).json()["order_id"]


def _webhook(client, gateway, event_type, order_id, intent_id, amount="25.50", signature=None, event_id=None):
    payload = gateway.build_event(event_type, intent_id=intent_id, order_id=order_id, amount=amount, event_id=event_id)
    return client.post(
        "/payments/webhook",
        content=payload,
        headers={"X-Gateway-Signature": signature or gateway.sign(payload), "Content-Type": "application/json"},
    )


class TestCreateIntent:
    def test_create_intent(self, client, order_id):
        response = client.post(f"/payments/intents/{order_id}", headers=customer())
        assert response.status_code == 200
        body = response.json()
        assert body["order_id"] == order_id
        assert body["amount"] == "25.50"
        assert body["intent_id"]
        assert body["client_secret"]

    def test_other_customer_gets_404(self, client, order_id):
        response = client.post(f"/payments/intents/{order_id}", headers=customer("cust-002"))
        assert response.status_code == 404

    def test_gateway_timeout_is_504(self, client, gateway, order_id):
        gateway.configure(latency=30.0)
        response = client.post(f"/payments/intents/{order_id}", headers=customer())
        assert response.status_code == 504


class TestWebhook:
    def test_success_marks_order_paid(self, client, gateway, order_id, admin_headers):
        intent_id = client.post(f"/payments/intents/{order_id}", headers=customer()).json()["intent_id"]

        response = _webhook(client, gateway, "payment_intent.succeeded", order_id, intent_id)

        assert response.status_code == 200
        assert response.json() == {"status": "received", "result": "applied", "reason": "order paid"}
        assert client.get(f"/orders/{order_id}", headers=admin_headers).json()["status"] == "paid"

    def test_duplicate_delivery_is_acknowledged(self, client, gateway, order_id):
        intent_id = client.post(f"/payments/intents/{order_id}", headers=customer()).json()["intent_id"]
        _webhook(client, gateway, "payment_intent.succeeded", order_id, intent_id, event_id="evt_dup")
        response = _webhook(client, gateway, "payment_intent.succeeded", order_id, intent_id, event_id="evt_dup")
        assert response.status_code == 200
        assert response.json()["result"] == "duplicate"

    def test_bad_signature_is_401(self, client, gateway, order_id, admin_headers):
        response = _webhook(client, gateway, "payment_intent.succeeded", order_id, "pi_x", signature="forged")
        assert response.status_code == 401
        assert client.get(f"/orders/{order_id}", headers=admin_headers).json()["status"] == "placed"

    def test_unknown_order_is_ignored(self, client, gateway):
        response = _webhook(client, gateway, "payment_intent.succeeded", "ord-missing", "pi_x")
        assert response.status_code == 200
        assert response.json()["result"] == "ignored"

    def test_wrong_amount_is_ignored(self, client, gateway, order_id, admin_headers):
        intent_id = client.post(f"/payments/intents/{order_id}", headers=customer()).json()["intent_id"]
        response = _webhook(client, gateway, "payment_intent.succeeded", order_id, intent_id, amount="1.00")
        assert response.json()["result"] == "ignored"
        assert client.get(f"/orders/{order_id}", headers=admin_headers).json()["status"] == "placed"

    def test_failed_payment_cancels(self, client, gateway, order_id, admin_headers):
        intent_id = client.post(f"/payments/intents/{order_id}", headers=customer()).json()["intent_id"]
        response = _webhook(client, gateway, "payment_intent.payment_failed", order_id, intent_id)
        assert response.json()["result"] == "applied"
        assert client.get(f"/orders/{order_id}", headers=admin_headers).json()["status"] == "cancelled"

    def test_malformed_signed_body_is_acknowledged(self, client, gateway):
        payload = '{"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": "oops"}}'
        response = client.post(
            "/payments/webhook",
            content=payload,
            headers={"X-Gateway-Signature": gateway.sign(payload)},
        )
        assert response.status_code == 200
        assert response.json()["result"] == "ignored"
