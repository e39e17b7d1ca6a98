"""Application tests for the Order State Machine service."""

import pytest
from protean import current_domain
from sales.actors import Actor
from sales.errors import IllegalTransition, InvalidArgument, InvalidState, NotFound, Unauthorized
from sales.order.lifecycle import TransitionOrder
from sales.order.order import Order, OrderStatus

ADMIN = Actor.administrator()
PAYMENTS = Actor.payment_system()


def _status(order_id):
    return current_domain.repository_for(Order).get(order_id).status


class TestTransition:
    def test_payment_system_marks_paid(self, services, placed_order):
        order = services.lifecycle.transition(str(placed_order.id), "paid", PAYMENTS)
        assert order.status == "paid"

    def test_full_fulfillment_path(self, services, placed_order):
        order_id = str(placed_order.id)
        services.lifecycle.transition(order_id, "paid", PAYMENTS)
        for status in ("shipped", "delivered", "returned"):
            services.lifecycle.transition(order_id, status, ADMIN)
        assert _status(order_id) == "returned"

    def test_accepts_enum_members(self, services, placed_order):
        order = services.lifecycle.transition(str(placed_order.id), OrderStatus.CANCELLED, ADMIN)
        assert order.status == "cancelled"

    def test_repeating_current_status_is_noop(self, services, placed_order):
        order_id = str(placed_order.id)
        services.lifecycle.transition(order_id, "paid", PAYMENTS)
        order, changed = services.lifecycle.attempt(order_id, "paid", PAYMENTS)
        assert changed is False
        assert order.status == "paid"
        assert order.total == "25.50"

    def test_illegal_transition_leaves_status(self, services, placed_order):
        order_id = str(placed_order.id)
        services.lifecycle.transition(order_id, "paid", PAYMENTS)
        services.lifecycle.transition(order_id, "shipped", ADMIN)
        services.lifecycle.transition(order_id, "delivered", ADMIN)
        with pytest.raises(InvalidState) as exc_info:
            services.lifecycle.transition(order_id, "paid", ADMIN)
        assert isinstance(exc_info.value, IllegalTransition)
        assert exc_info.value.context["current"] == "delivered"
        assert exc_info.value.context["requested"] == "paid"
        assert _status(order_id) == "delivered"

    def test_unknown_status_is_invalid_argument(self, services, placed_order):
        with pytest.raises(InvalidArgument):
            services.lifecycle.transition(str(placed_order.id), "teleported", ADMIN)

    def test_missing_order(self, services):
        with pytest.raises(NotFound):
            services.lifecycle.transition("ord-missing", "paid", ADMIN)

    def test_actor_is_required(self, services, placed_order):
        with pytest.raises(InvalidArgument):
            services.lifecycle.transition(str(placed_order.id), "paid", None)

    def test_only_from_narrows_sources(self, services, placed_order):
        order_id = str(placed_order.id)
        services.lifecycle.transition(order_id, "paid", PAYMENTS)
        with pytest.raises(IllegalTransition):
            services.lifecycle.attempt(order_id, "cancelled", PAYMENTS, only_from=[OrderStatus.PLACED])
        assert _status(order_id) == "paid"


class TestCapabilities:
    def test_customer_cancels_own_placed_order(self, services, placed_order):
        order = services.lifecycle.transition(str(placed_order.id), "cancelled", Actor.customer("cust-001"))
        assert order.status == "cancelled"

    def test_customer_cannot_cancel_someone_elses_order(self, services, placed_order):
        with pytest.raises(Unauthorized):
            services.lifecycle.transition(str(placed_order.id), "cancelled", Actor.customer("cust-002"))
        assert _status(str(placed_order.id)) == "placed"

    def test_customer_cannot_cancel_after_payment(self, services, placed_order):
        order_id = str(placed_order.id)
        services.lifecycle.transition(order_id, "paid", PAYMENTS)
        with pytest.raises(Unauthorized):
            services.lifecycle.transition(order_id, "cancelled", Actor.customer("cust-001"))

    def test_customer_cannot_mark_paid(self, services, placed_order):
        with pytest.raises(Unauthorized):
            services.lifecycle.transition(str(placed_order.id), "paid", Actor.customer("cust-001"))

    def test_payment_system_cannot_ship(self, services, placed_order):
        order_id = str(placed_order.id)
        services.lifecycle.transition(order_id, "paid", PAYMENTS)
        with pytest.raises(Unauthorized):
            services.lifecycle.transition(order_id, "shipped", PAYMENTS)

    def test_administrator_cancels_paid_order(self, services, placed_order):
        order_id = str(placed_order.id)
        services.lifecycle.transition(order_id, "paid", PAYMENTS)
        assert services.lifecycle.transition(order_id, "cancelled", ADMIN).status == "cancelled"


class TestTransitionCommand:
    def test_handler_reports_change(self, placed_order):
        changed = current_domain.process(
            TransitionOrder(order_id=str(placed_order.id), target_status="paid", actor="test"),
            asynchronous=False,
        )
        assert changed is True
        again = current_domain.process(
            TransitionOrder(order_id=str(placed_order.id), target_status="paid", actor="test"),
            asynchronous=False,
        )
        assert again is False
