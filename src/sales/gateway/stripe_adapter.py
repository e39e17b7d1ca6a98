"""Stripe payment gateway adapter.

Creates PaymentIntents through a ``stripe.StripeClient`` owned by the
adapter and verifies webhook signatures with ``stripe.Webhook.construct_event``.
Each intent request is bounded by the timeout the caller passes: clients are
kept per timeout value, with SDK retries off, so the SDK never waits longer
than that. An ``APIConnectionError`` (which includes timeouts) or a Stripe
server error surfaces as ``DependencyTimeout``.
"""

import json
import threading
from decimal import Decimal

import stripe
import structlog

from sales.errors import DependencyTimeout
from sales.gateway.port import GatewayEvent, IntentResult, PaymentGateway, event_from_dict
from sales.money import to_minor_units

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str, timeout: float = 2.0) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        self._clients: dict[float, stripe.StripeClient] = {}
        self._clients_lock = threading.Lock()

    def _client_for(self, timeout: float | None) -> stripe.StripeClient:
        timeout = timeout or self.timeout
        with self._clients_lock:
            client = self._clients.get(timeout)
            if client is None:
                client = stripe.StripeClient(
                    self.api_key,
                    http_client=stripe.RequestsClient(timeout=timeout),
                    max_network_retries=0,
                )
                self._clients[timeout] = client
            return client

    def create_intent(
        self,
        amount: Decimal,
        currency: str,
        metadata: dict,
        idempotency_key: str,
        timeout: float,
    ) -> IntentResult:
        client = self._client_for(timeout)
        try:
            intent = client.payment_intents.create(
                params={
                    "amount": to_minor_units(amount),
                    "currency": currency.lower(),
                    "metadata": metadata,
                },
                options={"idempotency_key": idempotency_key},
            )
        except (stripe.APIConnectionError, stripe.APIError) as exc:
            logger.warning("Stripe unavailable", idempotency_key=idempotency_key, timeout=timeout, error=str(exc))
            raise DependencyTimeout(
                "payment gateway did not respond in time",
                service="gateway",
                timeout=timeout,
            ) from exc

        return IntentResult(
            intent_id=intent.id,
            client_secret=getattr(intent, "client_secret", None),
            status=getattr(intent, "status", None),
        )

    def verify_signature(self, payload: bytes, signature: str) -> bool:
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (stripe.SignatureVerificationError, ValueError):
            return False
        return True

    def parse_event(self, payload: bytes) -> GatewayEvent | None:
        try:
            data = json.loads(payload)
        except ValueError:
            return None
        return event_from_dict(data)
