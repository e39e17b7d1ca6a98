"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from sales.domain import sales


@sales.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into an order with frozen prices."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total = String(required=True, max_length=32)
    currency = String(required=True, max_length=3)
    line_count = Integer(required=True)
    placed_at = DateTime(required=True)


@sales.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along its lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True, max_length=20)
    to_status = String(required=True, max_length=20)
    actor = String(max_length=255)
    changed_at = DateTime(required=True)


@sales.event(part_of="Order")
class PaymentIntentAttached:
    """A gateway payment intent was created for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)
