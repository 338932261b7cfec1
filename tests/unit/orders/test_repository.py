from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.django_repository import OrderDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


def new_order(number="ORD-20260101-ABCDEF"):
    return Order(
        order_number=number,
        customer_name="Bob",
        customer_email="bob@example.com",
        shipping_address="2 Side Street",
        total_amount=Decimal("30.00"),
    )


class TestOrderRepository:
    def test_create_persists_lines(self, repo, make_product):
        product = make_product(price=Decimal("15.00"))
        item = OrderItem(
            product=product,
            quantity=2,
            price_at_purchase=Decimal("15.00"),
            subtotal=Decimal("30.00"),
        )

        order = repo.create(new_order(), [item])

        items = repo.list_items(order.id)
        assert [i.product_id for i in items] == [product.id]
        assert items[0].order_id == order.id

    def test_lookups(self, repo):
        order = repo.create(new_order(), [])
        assert repo.get_by_id(str(order.id)) == order
        assert repo.get_for_update(str(order.id)) == order
        assert repo.get_by_order_number("ORD-20260101-ABCDEF") == order
        assert repo.exists_order_number("ORD-20260101-ABCDEF")
        assert not repo.exists_order_number("ORD-20260101-000000")

    def test_malformed_ids_are_none(self, repo):
        assert repo.get_by_id("nope") is None
        assert repo.get_for_update("nope") is None
        assert repo.get_by_id(str(uuid4())) is None

    def test_save_writes_status_fields_only(self, repo):
        order = repo.create(new_order(), [])
        order.status = OrderStatus.CONFIRMED
        order.customer_name = "Not persisted"
        repo.save(order)

        stored = Order.objects.get(id=order.id)
        assert stored.status == OrderStatus.CONFIRMED
        assert stored.customer_name == "Bob"

    def test_save_refuses_new_orders(self, repo):
        with pytest.raises(ValueError):
            repo.save(new_order())

    def test_history_in_insertion_order(self, repo):
        order = repo.create(new_order(), [])
        repo.add_history(order.id, OrderStatus.PENDING, notes="created")
        repo.add_history(order.id, OrderStatus.CONFIRMED, old_status=OrderStatus.PENDING)

        history = repo.list_history(order.id)
        assert [h.new_status for h in history] == [OrderStatus.PENDING, OrderStatus.CONFIRMED]

    def test_delete_removes_the_aggregate(self, repo, make_product):
        product = make_product()
        item = OrderItem(
            product=product, quantity=1, price_at_purchase=product.price, subtotal=product.price
        )
        order = repo.create(new_order(), [item])
        repo.add_history(order.id, OrderStatus.PENDING)

        assert repo.delete(str(order.id)) is True
        assert repo.list_items(order.id) == []
        assert repo.list_history(order.id) == []
        assert repo.delete(str(order.id)) is False
