"""Cart Store — the customer-facing cart operations.

Every mutation of a customer's cart runs under the ``cart:<customer_id>``
lock, the same lock the Order Builder holds during checkout, so an edit can
never interleave with the snapshot taken for an order.
"""

import structlog
from protean.utils.globals import current_domain

from sales.cart.cart import ShoppingCart
from sales.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from sales.cart.management import ClearCart, CreateCart
from sales.collaborators.port import AccountDirectory, Catalogue
from sales.config import Settings
from sales.errors import NotFound
from sales.locking import KeyedLocks
from sales.validation import require_identifier, require_positive_quantity, require_timeout

logger = structlog.get_logger(__name__)


def cart_lock_key(customer_id: str) -> str:
    return f"cart:{customer_id}"


class CartStore:
    def __init__(
        self,
        catalogue: Catalogue,
        accounts: AccountDirectory,
        locks: KeyedLocks,
        settings: Settings,
    ) -> None:
        self.catalogue = catalogue
        self.accounts = accounts
        self.locks = locks
        self.settings = settings

    # -------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------
    def find(self, customer_id: str) -> ShoppingCart | None:
        """Return the customer's cart with its items loaded, or None."""
        repo = current_domain.repository_for(ShoppingCart)
        carts = repo._dao.query.filter(customer_id=customer_id).all().items
        if not carts:
            return None
        return repo.get(carts[0].id)

    def view(self, customer_id) -> ShoppingCart | None:
        """Read-only lookup; never creates a cart."""
        return self.find(require_identifier(customer_id, "customer_id"))

    def _get_or_create(self, customer_id: str, timeout: float) -> ShoppingCart:
        cart = self.find(customer_id)
        if cart is not None:
            return cart

        self.accounts.fetch_customer(customer_id, timeout)
        cart_id = current_domain.process(CreateCart(customer_id=customer_id), asynchronous=False)
        logger.info("Cart created", customer_id=customer_id, cart_id=cart_id)
        return current_domain.repository_for(ShoppingCart).get(cart_id)

    def _require_cart(self, customer_id: str, line_id: str) -> ShoppingCart:
        cart = self.find(customer_id)
        if cart is None:
            raise NotFound(f"Cart line {line_id} does not exist", entity="CartItem", id=line_id)
        return cart

    def _reload(self, cart_id) -> ShoppingCart:
        return current_domain.repository_for(ShoppingCart).get(cart_id)

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def get_or_create_cart(self, customer_id, timeout=None) -> ShoppingCart:
        customer_id = require_identifier(customer_id, "customer_id")
        timeout = require_timeout(timeout, self.settings.dependency_timeout)

        with self.locks.hold(cart_lock_key(customer_id)):
            return self._get_or_create(customer_id, timeout)

    def add_item(self, customer_id, product_id, quantity, timeout=None) -> ShoppingCart:
        customer_id = require_identifier(customer_id, "customer_id")
        product_id = require_identifier(product_id, "product_id")
        quantity = require_positive_quantity(quantity)
        timeout = require_timeout(timeout, self.settings.dependency_timeout)

        with self.locks.hold(cart_lock_key(customer_id)):
            product = self.catalogue.fetch_product(product_id, timeout)
            cart = self._get_or_create(customer_id, timeout)
            item_id = current_domain.process(
                AddToCart(cart_id=str(cart.id), product_id=product.product_id, quantity=quantity),
                asynchronous=False,
            )
            logger.info(
                "Cart item added",
                customer_id=customer_id,
                product_id=product_id,
                item_id=item_id,
                quantity=quantity,
            )
            return self._reload(cart.id)

    def update_item(self, customer_id, line_id, quantity) -> ShoppingCart:
        customer_id = require_identifier(customer_id, "customer_id")
        line_id = require_identifier(line_id, "line_id")
        quantity = require_positive_quantity(quantity)

        with self.locks.hold(cart_lock_key(customer_id)):
            cart = self._require_cart(customer_id, line_id)
            current_domain.process(
                UpdateCartQuantity(cart_id=str(cart.id), item_id=line_id, new_quantity=quantity),
                asynchronous=False,
            )
            logger.info("Cart item updated", customer_id=customer_id, item_id=line_id, quantity=quantity)
            return self._reload(cart.id)

    def remove_item(self, customer_id, line_id) -> ShoppingCart:
        customer_id = require_identifier(customer_id, "customer_id")
        line_id = require_identifier(line_id, "line_id")

        with self.locks.hold(cart_lock_key(customer_id)):
            cart = self._require_cart(customer_id, line_id)
            current_domain.process(RemoveFromCart(cart_id=str(cart.id), item_id=line_id), asynchronous=False)
            logger.info("Cart item removed", customer_id=customer_id, item_id=line_id)
            return self._reload(cart.id)

    def clear(self, customer_id) -> None:
        customer_id = require_identifier(customer_id, "customer_id")

        with self.locks.hold(cart_lock_key(customer_id)):
            cart = self.find(customer_id)
            if cart is None or not cart.items:
                return
            current_domain.process(ClearCart(cart_id=str(cart.id)), asynchronous=False)
            logger.info("Cart cleared", customer_id=customer_id)
