"""Cart management — commands and handler.

Handles cart creation and clearing after checkout.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from sales.cart.cart import ShoppingCart
from sales.domain import sales


@sales.command(part_of="ShoppingCart")
class CreateCart:
    """Open the cart of a registered customer."""

    customer_id = Identifier(required=True)


@sales.command(part_of="ShoppingCart")
class ClearCart:
    """Empty a cart once its contents have been ordered."""

    cart_id = Identifier(required=True)


@sales.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = ShoppingCart.create(customer_id=command.customer_id)
        current_domain.repository_for(ShoppingCart).add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.clear()
        repo.add(cart)
