"""Application tests for order placement."""

from decimal import Decimal

import pytest
from protean import current_domain
from sales.actors import Actor
from sales.errors import DependencyTimeout, InvalidArgument, InvalidState, NotFound
from sales.order.order import Order


def _all_orders():
    return current_domain.repository_for(Order)._dao.query.all().items


class TestPlaceOrder:
    def test_order_from_cart(self, services, placed_order):
        assert placed_order.total == "25.50"
        assert placed_order.status == "placed"
        assert placed_order.currency == "USD"
        lines = placed_order.ordered_lines()
        assert [(line.product_id, line.quantity, line.unit_price) for line in lines] == [
            ("prod-a", 2, "10.00"),
            ("prod-b", 1, "5.50"),
        ]
        assert lines[0].title == "Espresso Cup"

    def test_cart_is_cleared(self, services, placed_order):
        cart = services.carts.view("cust-001")
        assert cart is not None
        assert len(cart.items) == 0

    def test_empty_cart_creates_no_order(self, services):
        services.carts.get_or_create_cart("cust-001")
        with pytest.raises(InvalidState):
            services.orders.place_order("cust-001")
        assert _all_orders() == []

    def test_missing_cart_is_invalid_state(self, services):
        with pytest.raises(InvalidState):
            services.orders.place_order("cust-001")

    def test_prices_are_fetched_fresh(self, services, catalogue):
        services.carts.add_item("cust-001", "prod-a", 1)
        catalogue.set_price("prod-a", "12.00")
        order = services.orders.place_order("cust-001")
        assert order.total == "12.00"

    def test_later_price_changes_do_not_touch_order(self, services, catalogue, placed_order):
        catalogue.set_price("prod-a", "99.00")
        reloaded = services.orders.get_order(str(placed_order.id), Actor.customer("cust-001"))
        assert reloaded.total == "25.50"
        assert sum((line.amount for line in reloaded.lines), Decimal("0")) == Decimal("25.50")

    def test_vanished_product_aborts_without_trace(self, services, catalogue):
        services.carts.add_item("cust-001", "prod-a", 1)
        catalogue.remove_product("prod-a")
        with pytest.raises(NotFound):
            services.orders.place_order("cust-001")
        assert _all_orders() == []
        assert len(services.carts.view("cust-001").items) == 1

    def test_catalogue_timeout_aborts_without_trace(self, services, catalogue):
        services.carts.add_item("cust-001", "prod-a", 1)
        catalogue.latency = 5.0
        with pytest.raises(DependencyTimeout):
            services.orders.place_order("cust-001", timeout=0.1)
        assert _all_orders() == []

    def test_blank_customer_is_invalid(self, services):
        with pytest.raises(InvalidArgument):
            services.orders.place_order("  ")


class TestGetOrder:
    def test_owner_can_read(self, services, placed_order):
        order = services.orders.get_order(str(placed_order.id), Actor.customer("cust-001"))
        assert order.id == placed_order.id

    def test_administrator_can_read(self, services, placed_order):
        order = services.orders.get_order(str(placed_order.id), Actor.administrator())
        assert order.id == placed_order.id

    def test_other_customer_gets_not_found(self, services, placed_order):
        with pytest.raises(NotFound):
            services.orders.get_order(str(placed_order.id), Actor.customer("cust-002"))

    def test_unknown_order(self, services):
        with pytest.raises(NotFound):
            services.orders.get_order("ord-missing", Actor.administrator())
