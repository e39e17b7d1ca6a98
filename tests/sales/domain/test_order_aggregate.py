"""Tests for the Order aggregate — placement and the total invariant."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError
from sales.errors import InvalidState
from sales.order.events import OrderPlaced, PaymentIntentAttached
from sales.order.order import Order, OrderStatus

LINES = [
    {"product_id": "prod-a", "title": "Espresso Cup", "quantity": 2, "unit_price": "10.00"},
    {"product_id": "prod-b", "title": "Milk Jug", "quantity": 1, "unit_price": "5.50"},
]


class TestPlace:
    def test_total_is_exact_sum_of_lines(self):
        order = Order.place("cust-001", LINES)
        assert order.total == "25.50"
        assert order.total_amount == Decimal("25.50")
        assert len(order.lines) == 2

    def test_initial_status_is_placed(self):
        order = Order.place("cust-001", LINES)
        assert order.status == OrderStatus.PLACED.value

    def test_lines_keep_their_order_and_prices(self):
        order = Order.place("cust-001", LINES)
        lines = order.ordered_lines()
        assert [line.product_id for line in lines] == ["prod-a", "prod-b"]
        assert lines[0].unit_price == "10.00"
        assert lines[0].amount == Decimal("20.00")

    def test_raises_order_placed(self):
        order = Order.place("cust-001", LINES, currency="EUR")
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.total == "25.50"
        assert event.currency == "EUR"
        assert event.line_count == 2

    def test_no_lines_is_invalid_state(self):
        with pytest.raises(InvalidState):
            Order.place("cust-001", [])

    def test_zero_total_is_invalid_state(self):
        with pytest.raises(InvalidState):
            Order.place("cust-001", [{"product_id": "free", "quantity": 1, "unit_price": "0.00"}])

    def test_many_small_prices_do_not_drift(self):
        order = Order.place("cust-001", [{"product_id": "prod-c", "quantity": 3, "unit_price": 0.1}])
        assert order.total == "0.30"


class TestTotalInvariant:
    def test_tampering_with_total_is_rejected(self):
        order = Order.place("cust-001", LINES)
        with pytest.raises(ValidationError) as exc_info:
            order.total = "30.00"
        assert "total" in exc_info.value.messages


class TestAttachPaymentIntent:
    def test_attach_keeps_status(self):
        order = Order.place("cust-001", LINES)
        order.attach_payment_intent("pi_123")
        assert order.payment_intent_id == "pi_123"
        assert order.status == OrderStatus.PLACED.value
        assert isinstance(order._events[-1], PaymentIntentAttached)

    def test_attach_requires_placed_status(self):
        order = Order.place("cust-001", LINES)
        order.transition_to(OrderStatus.CANCELLED)
        with pytest.raises(InvalidState):
            order.attach_payment_intent("pi_123")
