"""Order and payment state machines (no database access)."""

import pytest

from modules.orders.constants import (
    PAYMENT_TRANSITIONS,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.models import Order

pytestmark = pytest.mark.unit


ALLOWED = [
    (OrderStatus.PENDING, OrderStatus.CONFIRMED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.CONFIRMED, OrderStatus.SHIPPED),
    (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
]


class TestOrderTransitions:
    @pytest.mark.parametrize("current, target", ALLOWED)
    def test_allowed(self, current, target):
        assert Order(status=current).can_transition_to(target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (current, target)
            for current in OrderStatus.values
            for target in OrderStatus.values
            if (current, target) not in ALLOWED
        ],
    )
    def test_everything_else_is_refused(self, current, target):
        assert not Order(status=current).can_transition_to(target)

    @pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_states(self, status):
        order = Order(status=status)
        assert order.is_terminal
        assert VALID_TRANSITIONS[status] == set()

    @pytest.mark.parametrize(
        "status, cancellable",
        [
            (OrderStatus.PENDING, True),
            (OrderStatus.CONFIRMED, True),
            (OrderStatus.SHIPPED, False),
            (OrderStatus.DELIVERED, False),
            (OrderStatus.CANCELLED, False),
        ],
    )
    def test_cancellable(self, status, cancellable):
        assert Order(status=status).is_cancellable is cancellable


class TestPaymentTransitions:
    @pytest.mark.parametrize(
        "current, target, allowed",
        [
            (PaymentStatus.PENDING, PaymentStatus.COMPLETED, True),
            (PaymentStatus.PENDING, PaymentStatus.FAILED, True),
            (PaymentStatus.FAILED, PaymentStatus.COMPLETED, True),
            (PaymentStatus.FAILED, PaymentStatus.FAILED, True),
            (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED, True),
            (PaymentStatus.COMPLETED, PaymentStatus.FAILED, False),
            (PaymentStatus.PENDING, PaymentStatus.REFUNDED, False),
            (PaymentStatus.REFUNDED, PaymentStatus.COMPLETED, False),
        ],
    )
    def test_payment_table(self, current, target, allowed):
        assert Order(payment_status=current).can_transition_payment_to(target) is allowed

    def test_refunded_is_terminal(self):
        assert PAYMENT_TRANSITIONS[PaymentStatus.REFUNDED] == set()
