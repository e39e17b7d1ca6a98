"""Order placement — command, handler and the Order Builder service.

Checkout runs under the customer's cart lock. The cart is snapshotted, every
product is re-priced from the catalogue, and the order is persisted together
with the emptied cart in a single unit of work. Anything that fails before
that unit of work commits leaves no order behind.
"""

import json
import time

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from sales.actors import Actor, Capability
from sales.cart.cart import ShoppingCart
from sales.cart.store import CartStore, cart_lock_key
from sales.collaborators.port import Catalogue
from sales.config import Settings
from sales.domain import sales
from sales.errors import DependencyTimeout, InvalidState, NotFound
from sales.locking import KeyedLocks
from sales.order.order import Order
from sales.validation import require_identifier, require_timeout

logger = structlog.get_logger(__name__)


@sales.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of {product_id, title, quantity, unit_price}
    currency = String(max_length=3, default="USD")


@sales.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = json.loads(command.lines) if isinstance(command.lines, str) else command.lines

        order = Order.place(
            customer_id=command.customer_id,
            lines_data=lines,
            currency=command.currency or "USD",
        )
        current_domain.repository_for(Order).add(order)

        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.get(command.cart_id)
        cart.clear()
        cart_repo.add(cart)

        return str(order.id)


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise NotFound(f"Order {order_id} does not exist", entity="Order", id=str(order_id)) from exc


class OrderBuilder:
    def __init__(
        self,
        carts: CartStore,
        catalogue: Catalogue,
        locks: KeyedLocks,
        settings: Settings,
    ) -> None:
        self.carts = carts
        self.catalogue = catalogue
        self.locks = locks
        self.settings = settings

    def _price_lines(self, snapshot: list[dict], timeout: float) -> list[dict]:
        deadline = time.monotonic() + timeout
        lines = []
        for item in snapshot:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise DependencyTimeout(
                    f"catalogue did not respond within {timeout}s",
                    service="catalogue",
                    timeout=timeout,
                )
            product = self.catalogue.fetch_product(item["product_id"], remaining)
            lines.append(
                {
                    "product_id": item["product_id"],
                    "title": product.title,
                    "quantity": item["quantity"],
                    "unit_price": str(product.price),
                }
            )
        return lines

    def place_order(self, customer_id, timeout=None) -> Order:
        customer_id = require_identifier(customer_id, "customer_id")
        timeout = require_timeout(timeout, self.settings.dependency_timeout)

        with self.locks.hold(cart_lock_key(customer_id)):
            cart = self.carts.find(customer_id)
            if cart is None or not cart.items:
                raise InvalidState("Cannot place an order from an empty cart", entity="ShoppingCart", id=customer_id)

            lines = self._price_lines(cart.snapshot(), timeout)

            order_id = current_domain.process(
                PlaceOrder(
                    customer_id=customer_id,
                    cart_id=str(cart.id),
                    lines=json.dumps(lines),
                    currency=self.settings.currency,
                ),
                asynchronous=False,
            )

        order = load_order(order_id)
        logger.info(
            "Order placed",
            order_id=order_id,
            customer_id=customer_id,
            total=order.total,
            currency=order.currency,
            lines=len(lines),
        )
        return order

    def get_order(self, order_id, actor: Actor) -> Order:
        """Load an order; customers only see their own."""
        order_id = require_identifier(order_id, "order_id")
        order = load_order(order_id)
        if not actor.can(Capability.MANAGE_FULFILLMENT) and not actor.owns(order.customer_id):
            raise NotFound(f"Order {order_id} does not exist", entity="Order", id=order_id)
        return order
