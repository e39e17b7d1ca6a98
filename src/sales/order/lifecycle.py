"""Order State Machine — command, handler and service.

``OrderStateMachine.transition`` is the only way an order's status changes.
Each call names an ``Actor``; the actor's capabilities decide which moves it
may request:

- RECORD_PAYMENT (payment system): to ``paid`` or ``cancelled``
- MANAGE_FULFILLMENT (administrator): any move the transition table allows
- CANCEL_OWN_ORDER (customer): ``placed → cancelled`` on their own orders

Requesting the status the order already has is a no-op, so duplicate
deliveries of the same request are harmless. The read-modify-write runs
under the ``order:<id>`` lock.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from sales.actors import Actor, Capability
from sales.config import Settings
from sales.domain import sales
from sales.errors import IllegalTransition, InvalidArgument, Unauthorized
from sales.locking import KeyedLocks
from sales.order.order import Order, OrderStatus
from sales.order.placement import load_order
from sales.validation import require_choice, require_identifier

logger = structlog.get_logger(__name__)


def order_lock_key(order_id: str) -> str:
    return f"order:{order_id}"


@sales.command(part_of="Order")
class TransitionOrder:
    order_id = Identifier(required=True)
    target_status = String(required=True, choices=OrderStatus)
    actor = String(max_length=255)
    only_from = Text()  # JSON: list of statuses the move may start from


@sales.command_handler(part_of=Order)
class TransitionOrderHandler:
    @handle(TransitionOrder)
    def transition_order(self, command):
        """Returns True when the status changed, False for a repeated request."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        target = OrderStatus(command.target_status)

        if order.status == target.value:
            return False

        only_from = json.loads(command.only_from) if command.only_from else None
        if only_from is not None and order.status not in only_from:
            raise IllegalTransition(str(order.id), order.status, target.value)

        order.transition_to(target, actor=command.actor)
        repo.add(order)
        return True


class OrderStateMachine:
    def __init__(self, locks: KeyedLocks, settings: Settings) -> None:
        self.locks = locks
        self.settings = settings

    @staticmethod
    def authorize(order: Order, target: OrderStatus, actor: Actor) -> None:
        if actor.can(Capability.MANAGE_FULFILLMENT):
            return
        if actor.can(Capability.RECORD_PAYMENT) and target in (OrderStatus.PAID, OrderStatus.CANCELLED):
            return
        if (
            actor.can(Capability.CANCEL_OWN_ORDER)
            and target == OrderStatus.CANCELLED
            and actor.owns(order.customer_id)
            and order.status in (OrderStatus.PLACED.value, OrderStatus.CANCELLED.value)
        ):
            return

        raise Unauthorized(
            f"{actor.name} may not move order {order.id} to {target.value}",
            entity="Order",
            id=str(order.id),
            current=order.status,
            requested=target.value,
            actor=actor.name,
        )

    def attempt(self, order_id, target, actor: Actor, only_from=None) -> tuple[Order, bool]:
        """Apply a transition and report whether the status changed.

        ``only_from`` optionally narrows the statuses the move may start
        from; outside of them the move is treated as illegal.
        """
        order_id = require_identifier(order_id, "order_id")
        if isinstance(target, OrderStatus):
            target = target.value
        target = OrderStatus(require_choice(target, OrderStatus, "status"))
        if not isinstance(actor, Actor):
            raise InvalidArgument("actor is required", field="actor")

        with self.locks.hold(order_lock_key(order_id)):
            order = load_order(order_id)
            self.authorize(order, target, actor)
            previous = order.status

            changed = current_domain.process(
                TransitionOrder(
                    order_id=order_id,
                    target_status=target.value,
                    actor=actor.name,
                    only_from=json.dumps([status.value for status in only_from]) if only_from else None,
                ),
                asynchronous=False,
            )
            order = load_order(order_id)

        if changed:
            logger.info(
                "Order status changed",
                order_id=order_id,
                from_status=previous,
                to_status=target.value,
                actor=actor.name,
            )
        else:
            logger.info("Order already in requested status", order_id=order_id, status=target.value, actor=actor.name)
        return order, changed

    def transition(self, order_id, target_status, actor: Actor) -> Order:
        order, _ = self.attempt(order_id, target_status, actor)
        return order
