"""Shopping Cart aggregate (CQRS) — one mutable cart per customer.

The cart records which products a customer intends to buy and how many.
Prices are not stored here; they are fetched from the catalogue when the
cart is turned into an order. A product appears at most once: adding it
again increases the quantity of the existing line.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, HasMany, Identifier, Integer

from sales.cart.events import (
    CartCleared,
    CartCreated,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from sales.domain import sales
from sales.errors import NotFound


@sales.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@sales.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        cart = cls(customer_id=customer_id, created_at=now, updated_at=now)
        cart.raise_(CartCreated(cart_id=str(cart.id), customer_id=str(customer_id)))
        return cart

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFound(
                f"Cart line {item_id} does not exist",
                entity="CartItem",
                id=str(item_id),
                cart_id=str(self.id),
            )
        return item

    def add_item(self, product_id, quantity):
        """Add a product to the cart (or increase quantity if already present).

        Returns the id of the affected line.
        """
        existing = next((i for i in self.items if str(i.product_id) == str(product_id)), None)
        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(product_id=product_id, quantity=quantity, added_at=now)
            self.add_items(item)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                quantity=quantity,
                new_quantity=item.quantity,
            )
        )
        return str(item.id)

    def update_item_quantity(self, item_id, new_quantity):
        """Set the quantity of an existing cart line."""
        item = self._find_item(item_id)

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        """Remove a line from the cart. Unknown lines raise ``NotFound``."""
        item = self._find_item(item_id)

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self):
        """Remove every line; the cart itself is kept for later use."""
        items = list(self.items)
        for item in items:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), items_removed=len(items)))

    def snapshot(self) -> list[dict]:
        """Product ids and quantities, in insertion order."""
        return [
            {"item_id": str(item.id), "product_id": str(item.product_id), "quantity": item.quantity}
            for item in sorted(self.items, key=lambda i: i.added_at)
        ]
