"""Payment Reconciler — gateway intents out, gateway webhooks in.

The gateway may deliver a webhook more than once, late, or out of order.
Every delivery is acknowledged unless its signature is bad; business
mismatches (unknown order, stale event, wrong amount) are logged for review
and reported as ``ignored`` so the gateway stops retrying.

Event type mapping:
    payment_intent.succeeded       → paid
    payment_intent.payment_failed  → cancelled (only from placed)
    payment_intent.canceled        → cancelled (only from placed)
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from protean.utils.globals import current_domain

from sales.actors import Actor
from sales.config import Settings
from sales.errors import InvalidState, NotFound, Unauthorized
from sales.gateway.port import GatewayEvent, PaymentGateway
from sales.locking import KeyedLocks
from sales.order.lifecycle import OrderStateMachine, order_lock_key
from sales.order.order import OrderStatus
from sales.order.placement import load_order
from sales.payment.intent import AttachPaymentIntent
from sales.validation import require_identifier, require_timeout

logger = structlog.get_logger(__name__)

_EVENT_TARGETS = {
    "payment_intent.succeeded": (OrderStatus.PAID, None),
    "payment_intent.payment_failed": (OrderStatus.CANCELLED, [OrderStatus.PLACED]),
    "payment_intent.canceled": (OrderStatus.CANCELLED, [OrderStatus.PLACED]),
}


class WebhookResult(Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"


@dataclass(frozen=True)
class WebhookOutcome:
    result: WebhookResult
    reason: str = ""
    event_id: str | None = None
    order_id: str | None = None


@dataclass(frozen=True)
class PaymentIntentRef:
    """What a client needs to complete payment with the gateway."""

    order_id: str
    intent_id: str
    client_secret: str | None
    amount: str
    currency: str


class PaymentReconciler:
    def __init__(
        self,
        gateway: PaymentGateway,
        state_machine: OrderStateMachine,
        locks: KeyedLocks,
        settings: Settings,
    ) -> None:
        self.gateway = gateway
        self.state_machine = state_machine
        self.locks = locks
        self.settings = settings
        self.actor = Actor.payment_system()

    # -------------------------------------------------------------------
    # Outbound
    # -------------------------------------------------------------------
    def create_payment_intent(self, order_id, timeout=None) -> PaymentIntentRef:
        order_id = require_identifier(order_id, "order_id")
        timeout = require_timeout(timeout, self.settings.dependency_timeout)

        with self.locks.hold(order_lock_key(order_id)):
            order = load_order(order_id)
            if order.status != OrderStatus.PLACED.value:
                raise InvalidState(
                    f"Order {order_id} is {order.status}; payment can only be requested for placed orders",
                    entity="Order",
                    id=order_id,
                    current=order.status,
                )

            intent = self.gateway.create_intent(
                amount=order.total_amount,
                currency=order.currency,
                metadata={"order_id": order_id},
                idempotency_key=f"order-{order_id}",
                timeout=timeout,
            )
            self._attach(order_id, intent.intent_id)

        logger.info("Payment intent created", order_id=order_id, intent_id=intent.intent_id, amount=order.total)
        return PaymentIntentRef(
            order_id=order_id,
            intent_id=intent.intent_id,
            client_secret=intent.client_secret,
            amount=order.total,
            currency=order.currency,
        )

    @staticmethod
    def _attach(order_id: str, intent_id: str) -> None:
        current_domain.process(
            AttachPaymentIntent(order_id=order_id, payment_intent_id=intent_id),
            asynchronous=False,
        )

    # -------------------------------------------------------------------
    # Inbound
    # -------------------------------------------------------------------
    def _ignore(self, event: GatewayEvent | None, reason: str, **context) -> WebhookOutcome:
        logger.warning(
            "Gateway event ignored",
            reason=reason,
            event_id=event.event_id if event else None,
            event_type=event.type if event else None,
            needs_review=True,
            **context,
        )
        return WebhookOutcome(
            result=WebhookResult.IGNORED,
            reason=reason,
            event_id=event.event_id if event else None,
            order_id=context.get("order_id"),
        )

    def apply_gateway_event(self, payload, signature) -> WebhookOutcome:
        if isinstance(payload, str):
            payload = payload.encode()
        if not self.gateway.verify_signature(payload, signature or ""):
            logger.warning("Gateway webhook rejected", reason="invalid signature")
            raise Unauthorized("Invalid webhook signature", entity="GatewayEvent")

        event = self.gateway.parse_event(payload)
        if event is None:
            return self._ignore(None, "unparseable payload")

        mapping = _EVENT_TARGETS.get(event.type)
        if mapping is None:
            return self._ignore(event, "unhandled event type")

        if not event.order_id:
            return self._ignore(event, "event carries no order id", intent_id=event.intent_id)

        try:
            order = load_order(event.order_id)
        except NotFound:
            return self._ignore(event, "unknown order", order_id=event.order_id)

        if order.payment_intent_id and event.intent_id and order.payment_intent_id != event.intent_id:
            logger.warning(
                "Gateway event intent differs from the order's intent",
                order_id=event.order_id,
                event_intent_id=event.intent_id,
                order_intent_id=order.payment_intent_id,
            )

        target, only_from = mapping
        if target == OrderStatus.PAID and (
            event.amount != order.total_amount or (event.currency or "").upper() != order.currency.upper()
        ):
            logger.error(
                "Gateway payment does not match order total",
                order_id=event.order_id,
                event_id=event.event_id,
                order_total=order.total,
                order_currency=order.currency,
                paid_amount=str(event.amount) if event.amount is not None else None,
                paid_currency=event.currency,
                needs_review=True,
            )
            return WebhookOutcome(
                result=WebhookResult.IGNORED,
                reason="amount mismatch",
                event_id=event.event_id,
                order_id=event.order_id,
            )

        try:
            _, changed = self.state_machine.attempt(event.order_id, target, self.actor, only_from=only_from)
        except InvalidState as exc:
            return self._ignore(event, "stale or out-of-order event", order_id=event.order_id, detail=exc.message)

        if not changed:
            logger.info("Duplicate gateway event", order_id=event.order_id, event_id=event.event_id)
            return WebhookOutcome(
                result=WebhookResult.DUPLICATE,
                reason=f"order already {target.value}",
                event_id=event.event_id,
                order_id=event.order_id,
            )

        logger.info(
            "Gateway event applied",
            order_id=event.order_id,
            event_id=event.event_id,
            event_type=event.type,
            status=target.value,
        )
        return WebhookOutcome(
            result=WebhookResult.APPLIED,
            reason=f"order {target.value}",
            event_id=event.event_id,
            order_id=event.order_id,
        )
