"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer

from sales.domain import sales


@sales.event(part_of="ShoppingCart")
class CartCreated:
    """A customer's cart was opened."""

    __version__ = 1

    cart_id = Identifier(required=True)
    customer_id = Identifier(required=True)


@sales.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the shopping cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@sales.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart item was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@sales.event(part_of="ShoppingCart")
class CartItemRemoved:
    """An item was removed from the shopping cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@sales.event(part_of="ShoppingCart")
class CartCleared:
    """All items were removed, typically after checkout."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)
