"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing any domain or application code.

Gateway webhook events follow the Stripe event envelope::

    {"id": "evt_...", "type": "payment_intent.succeeded",
     "data": {"object": {"id": "pi_...", "amount": 2550, "currency": "usd",
                         "metadata": {"order_id": "..."}}}}

Amounts on the wire are integer minor units.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from sales.money import to_money


@dataclass(frozen=True)
class IntentResult:
    """A payment intent created at the gateway."""

    intent_id: str
    client_secret: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class GatewayEvent:
    """A webhook notification, reduced to what reconciliation needs."""

    event_id: str
    type: str
    intent_id: str | None = None
    order_id: str | None = None
    amount: Decimal | None = None
    currency: str | None = None


def _minor_units_to_money(amount) -> Decimal | None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        return None
    return to_money(Decimal(amount) / 100)


def event_from_dict(data: dict) -> GatewayEvent | None:
    """Map a Stripe-shaped event envelope to a ``GatewayEvent``.

    Returns None when the envelope lacks an id or type, or when any nested
    field has the wrong shape.
    """
    if not isinstance(data, dict) or not data.get("id") or not data.get("type"):
        return None

    envelope = data.get("data") or {}
    if not isinstance(envelope, dict):
        return None
    obj = envelope.get("object") or {}
    if not isinstance(obj, dict):
        return None
    metadata = obj.get("metadata") or {}
    if not isinstance(metadata, dict):
        return None

    amount = obj.get("amount")
    currency = obj.get("currency")
    intent_id = obj.get("id")
    order_id = metadata.get("order_id")
    if currency is not None and not isinstance(currency, str):
        return None
    if intent_id is not None and not isinstance(intent_id, str):
        return None
    if order_id is not None and not isinstance(order_id, str):
        return None

    money = None
    if amount is not None:
        money = _minor_units_to_money(amount)
        if money is None:
            return None

    return GatewayEvent(
        event_id=str(data["id"]),
        type=str(data["type"]),
        intent_id=intent_id,
        order_id=order_id,
        amount=money,
        currency=currency.upper() if currency else None,
    )


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        amount: Decimal,
        currency: str,
        metadata: dict,
        idempotency_key: str,
        timeout: float,
    ) -> IntentResult:
        """Create a payment intent; raise ``DependencyTimeout`` if the gateway is slow."""
        ...

    @abstractmethod
    def verify_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_event(self, payload: bytes) -> GatewayEvent | None:
        """Decode an authenticated payload; None when it is not a recognisable event."""
        ...
