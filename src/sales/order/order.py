"""Order aggregate (CQRS) — the durable record of a checkout.

An order is created from a cart snapshot with unit prices frozen at the
moment of placement. After creation only ``status``, ``payment_intent_id``
and ``updated_at`` ever change; lines and total are never recomputed from
live catalogue prices.

Amounts are stored as decimal strings with two minor-unit digits.

State Machine:
    PLACED → PAID → SHIPPED → DELIVERED → RETURNED
    PLACED → CANCELLED
    PAID → CANCELLED
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from sales.domain import sales
from sales.errors import IllegalTransition, InvalidState
from sales.money import line_amount, sum_lines, to_money
from sales.order.events import OrderPlaced, OrderStatusChanged, PaymentIntentAttached


class OrderStatus(Enum):
    PLACED = "placed"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


_VALID_TRANSITIONS = {
    OrderStatus.PLACED: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.RETURNED: set(),  # Terminal
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


@sales.entity(part_of="Order")
class OrderLine:
    """A product, its quantity and the unit price captured at checkout."""

    product_id = Identifier(required=True)
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = String(required=True, max_length=32)
    position = Integer(default=0)

    @property
    def amount(self):
        return line_amount(self.quantity, self.unit_price)


@sales.aggregate
class Order:
    customer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PLACED.value)
    lines = HasMany(OrderLine)
    total = String(required=True, max_length=32)
    currency = String(max_length=3, default="USD")
    payment_intent_id = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_lines(self):
        if not self.lines:
            return
        expected = sum_lines((line.quantity, line.unit_price) for line in self.lines)
        if to_money(self.total) != expected:
            raise ValidationError({"total": [f"Order total {self.total} does not match its lines ({expected})"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, customer_id, lines_data, currency="USD"):
        """Create an order from priced lines.

        Args:
            customer_id: The customer placing the order.
            lines_data: List of dicts with product_id, title, quantity, unit_price.
            currency: ISO currency code for the total.
        """
        if not lines_data:
            raise InvalidState("An order must have at least one line", entity="Order", customer_id=str(customer_id))

        total = sum_lines((line["quantity"], line["unit_price"]) for line in lines_data)
        if total <= 0:
            raise InvalidState(
                f"Order total must be positive, got {total}",
                entity="Order",
                customer_id=str(customer_id),
            )

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            status=OrderStatus.PLACED.value,
            lines=[
                OrderLine(
                    position=position,
                    product_id=line["product_id"],
                    title=line.get("title"),
                    quantity=line["quantity"],
                    unit_price=str(to_money(line["unit_price"])),
                )
                for position, line in enumerate(lines_data)
            ],
            total=str(total),
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                total=str(total),
                currency=currency,
                line_count=len(lines_data),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def transition_to(self, target: OrderStatus, actor: str | None = None) -> None:
        """Move to ``target``; raise ``IllegalTransition`` if the table forbids it."""
        current = OrderStatus(self.status)
        if not can_transition(current, target):
            raise IllegalTransition(str(self.id), current.value, target.value)

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=current.value,
                to_status=target.value,
                actor=actor,
                changed_at=now,
            )
        )

    def attach_payment_intent(self, payment_intent_id: str) -> None:
        if OrderStatus(self.status) != OrderStatus.PLACED:
            raise InvalidState(
                f"Order {self.id} is {self.status}; payment can only be requested for placed orders",
                entity="Order",
                id=str(self.id),
                current=self.status,
            )

        self.payment_intent_id = payment_intent_id
        self.updated_at = datetime.now(UTC)
        self.raise_(PaymentIntentAttached(order_id=str(self.id), payment_intent_id=payment_intent_id))

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def total_amount(self):
        return to_money(self.total)

    def ordered_lines(self) -> list:
        """Lines in the order they were placed."""
        return sorted(self.lines, key=lambda line: line.position)
