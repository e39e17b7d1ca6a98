"""Configurable fake payment gateway for development and testing.

This adapter simulates a real payment gateway without any external calls.
Webhook payloads are signed with HMAC-SHA256 over the raw body using the
configured secret, the same scheme a real gateway uses, so the webhook
endpoint can be exercised end to end. ``sign()`` and ``build_event()``
produce what the gateway would send.

Intent creation is idempotent per idempotency key, like Stripe's.
"""

import hashlib
import hmac
import json
import time
from decimal import Decimal
from uuid import uuid4

from sales.errors import DependencyTimeout
from sales.gateway.port import GatewayEvent, IntentResult, PaymentGateway, event_from_dict
from sales.money import to_minor_units


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str = "whsec_test", latency: float = 0.0) -> None:
        self.webhook_secret = webhook_secret
        self.latency = latency
        self.intents: dict[str, IntentResult] = {}
        self.calls: list[dict] = []

    def configure(self, latency: float = 0.0) -> None:
        """Configure gateway behavior at runtime."""
        self.latency = latency

    def create_intent(
        self,
        amount: Decimal,
        currency: str,
        metadata: dict,
        idempotency_key: str,
        timeout: float,
    ) -> IntentResult:
        call = {
            "method": "create_intent",
            "amount": amount,
            "currency": currency,
            "metadata": dict(metadata),
            "idempotency_key": idempotency_key,
            "timeout": timeout,
        }
        self.calls.append(call)

        if self.latency > timeout:
            raise DependencyTimeout(
                f"payment gateway did not respond within {timeout}s",
                service="gateway",
                timeout=timeout,
            )
        if self.latency:
            time.sleep(self.latency)

        if idempotency_key not in self.intents:
            intent_id = f"pi_fake_{uuid4().hex[:16]}"
            self.intents[idempotency_key] = IntentResult(
                intent_id=intent_id,
                client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
                status="requires_payment_method",
            )
        return self.intents[idempotency_key]

    def sign(self, payload) -> str:
        if isinstance(payload, str):
            payload = payload.encode()
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    def verify_signature(self, payload: bytes, signature: str) -> bool:
        if not signature:
            return False
        return hmac.compare_digest(self.sign(payload), signature)

    def parse_event(self, payload: bytes) -> GatewayEvent | None:
        try:
            data = json.loads(payload)
        except ValueError:
            return None
        return event_from_dict(data)

    def build_event(
        self,
        event_type: str,
        intent_id: str | None,
        order_id: str | None,
        amount,
        currency: str = "USD",
        event_id: str | None = None,
    ) -> str:
        """Serialize an event envelope as the gateway would deliver it."""
        metadata = {"order_id": order_id} if order_id else {}
        return json.dumps(
            {
                "id": event_id or f"evt_fake_{uuid4().hex[:16]}",
                "type": event_type,
                "data": {
                    "object": {
                        "id": intent_id,
                        "amount": to_minor_units(amount),
                        "currency": currency.lower(),
                        "metadata": metadata,
                    }
                },
            }
        )
