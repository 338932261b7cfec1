"""Unit tests for OrderService.create_order (checkout)."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.cart.models import CartItem
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.core.exceptions import (
    ConcurrencyConflict,
    InsufficientStock,
    InvalidOperation,
    NotFound,
)
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.stock import StockService

pytestmark = pytest.mark.unit

SESSION = "checkout-session"


class StaleProductRepository(ProductDjangoRepository):
    def compare_and_swap(self, id, expected_version, changes):
        return None


class VanishedProductRepository(ProductDjangoRepository):
    def get_by_id(self, id):
        return None


class LateLineCartRepository(CartDjangoRepository):
    """Another request adds a line right after checkout has read the cart."""

    def __init__(self, late_product):
        self.late_product = late_product

    def list_for_session(self, session_id):
        lines = super().list_for_session(session_id)
        CartItem.objects.create(
            session_id=session_id,
            product=self.late_product,
            quantity=1,
            subtotal=self.late_product.price,
        )
        return lines


class FailingStockService(StockService):
    """Decrements normally except for one product, which is reported sold out."""

    def __init__(self, fail_on):
        super().__init__(ProductDjangoRepository())
        self.fail_on = fail_on

    def decrement(self, product_id, quantity):
        if str(product_id) == str(self.fail_on):
            raise InsufficientStock("sold out meanwhile", requested=quantity, available=0)
        return super().decrement(product_id, quantity)


def build_service(**overrides):
    kwargs = {
        "order_repository": OrderDjangoRepository(),
        "cart_repository": CartDjangoRepository(),
        "product_repository": ProductDjangoRepository(),
    }
    kwargs.update(overrides)
    return OrderService(**kwargs)


def assert_nothing_committed(*products_with_stock):
    assert Order.objects.count() == 0
    assert OrderItem.objects.count() == 0
    assert CartItem.objects.filter(session_id=SESSION).exists()
    for product, stock in products_with_stock:
        product.refresh_from_db()
        assert product.stock_quantity == stock
        assert product.version == 1


class TestCreateOrderSuccess:
    def test_order_is_pending_with_total(self, checkout, make_product):
        mug = make_product(name="Mug", price=Decimal("8.50"), stock_quantity=10)
        pen = make_product(name="Pen", price=Decimal("1.25"), stock_quantity=10)

        order = checkout((mug, 2), (pen, 4))

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.total_amount == Decimal("22.00")
        assert order.order_number.startswith("ORD-")

    def test_stock_is_committed_with_version_bump(self, checkout, make_product):
        product = make_product(stock_quantity=10)
        checkout((product, 3))

        product.refresh_from_db()
        assert product.stock_quantity == 7
        assert product.version == 2

    def test_lines_snapshot_price(self, checkout, make_product):
        product = make_product(price=Decimal("5.00"))
        order = checkout((product, 2))
        Product.objects.filter(id=product.id).update(price=Decimal("99.00"))

        item = OrderItem.objects.get(order_id=order.id)
        assert item.price_at_purchase == Decimal("5.00")
        assert item.subtotal == Decimal("10.00")
        order.refresh_from_db()
        assert order.total_amount == Decimal("10.00")

    def test_cart_is_cleared(self, checkout, make_product, make_cart_line):
        other = make_cart_line("someone-else", make_product(name="Other"), 1)
        checkout((make_product(), 1))

        assert not CartItem.objects.filter(session_id=SESSION).exists()
        assert CartItem.objects.filter(id=other.id).exists()

    def test_line_added_during_checkout_stays_in_cart(self, checkout, make_product):
        ordered = make_product(name="Ordered")
        late = make_product(name="Late")
        service = build_service(cart_repository=LateLineCartRepository(late))

        order = checkout((ordered, 1), service=service)

        ordered_ids = list(
            OrderItem.objects.filter(order_id=order.id).values_list("product_id", flat=True)
        )
        assert ordered_ids == [ordered.id]
        remaining = CartItem.objects.filter(session_id=SESSION)
        assert [line.product_id for line in remaining] == [late.id]

    def test_initial_history_entry(self, checkout, make_product):
        order = checkout((make_product(), 1))
        history = OrderStatusHistory.objects.get(order_id=order.id)
        assert history.old_status is None
        assert history.new_status == OrderStatus.PENDING

    def test_describe_includes_lines_and_history(self, checkout, order_service, make_product):
        order = checkout((make_product(name="Lamp"), 2))
        detail = order_service.describe(order)

        assert detail.items[0].product_name == "Lamp"
        assert detail.items[0].quantity == 2
        assert [h.new_status for h in detail.history] == [OrderStatus.PENDING]

    def test_order_number_uses_injected_generator(self, checkout, make_product):
        service = build_service(order_number_generator=lambda is_taken: "ORD-TEST-000001")
        order = checkout((make_product(), 1), service=service)
        assert order.order_number == "ORD-TEST-000001"


class TestCreateOrderRejections:
    def test_empty_cart(self, order_service):
        with pytest.raises(InvalidOperation):
            order_service.create_order(
                CreateOrderDTO(
                    session_id="empty",
                    customer_name="Ana",
                    customer_email="ana@example.com",
                    shipping_address="Somewhere",
                )
            )
        assert Order.objects.count() == 0

    def test_inactive_product(self, checkout, make_product):
        product = make_product(is_active=False)
        with pytest.raises(InvalidOperation):
            checkout((product, 1))
        assert_nothing_committed((product, 10))

    def test_stock_dropped_since_added_to_cart(self, checkout, make_product, make_cart_line):
        product = make_product(stock_quantity=5)
        make_cart_line(SESSION, product, 4)
        Product.objects.filter(id=product.id).update(stock_quantity=3)

        with pytest.raises(InsufficientStock) as info:
            checkout()

        assert info.value.available == 3
        assert Order.objects.count() == 0

    def test_product_missing_from_store(self, checkout, make_product):
        product = make_product()
        service = build_service(product_repository=VanishedProductRepository())

        with pytest.raises(NotFound):
            checkout((product, 1), service=service)

        assert_nothing_committed((product, 10))


class TestCreateOrderAtomicity:
    def test_failure_on_a_later_line_rolls_back_earlier_decrements(
        self, checkout, make_product
    ):
        first = make_product(name="First", stock_quantity=10)
        second = make_product(name="Second", stock_quantity=10)
        service = build_service(stock_service=FailingStockService(fail_on=second.id))

        with pytest.raises(InsufficientStock):
            checkout((first, 2), (second, 1), service=service)

        assert_nothing_committed((first, 10), (second, 10))

    def test_exhausted_retries_raise_conflict_and_roll_back(self, checkout, make_product):
        product = make_product(stock_quantity=10)
        service = build_service(
            stock_service=StockService(StaleProductRepository(), max_retries=2)
        )

        with pytest.raises(ConcurrencyConflict):
            checkout((product, 1), service=service)

        assert_nothing_committed((product, 10))

    def test_order_number_failure_rolls_back_stock(self, checkout, make_product):
        product = make_product(stock_quantity=10)

        def exhausted(is_taken):
            raise RuntimeError("Failed to generate unique order_number after 5 attempts")

        service = build_service(order_number_generator=exhausted)
        with pytest.raises(RuntimeError):
            checkout((product, 2), service=service)

        assert_nothing_committed((product, 10))
