from decimal import Decimal

import pytest

from rest_framework.test import APIClient

from modules.cart.models import CartItem
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.orders.dtos import CreateOrderDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def make_product():
    """Factory for persisted products; keyword arguments override defaults."""

    def _make(**overrides):
        fields = {
            "name": "Widget",
            "description": "A fine widget",
            "price": Decimal("10.00"),
            "stock_quantity": 10,
            "category": "Gadgets",
        }
        fields.update(overrides)
        return Product.objects.create(**fields)

    return _make


@pytest.fixture()
def make_cart_line():
    """Factory for cart lines written straight to the table."""

    def _make(session_id, product, quantity=1):
        return CartItem.objects.create(
            session_id=session_id,
            product=product,
            quantity=quantity,
            subtotal=product.price * quantity,
        )

    return _make


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def checkout(order_service, make_cart_line):
    """Fill a session cart with ``(product, quantity)`` pairs and place the order."""

    def _checkout(*lines, session_id="checkout-session", service=None):
        for product, quantity in lines:
            make_cart_line(session_id, product, quantity)
        return (service or order_service).create_order(
            CreateOrderDTO(
                session_id=session_id,
                customer_name="Ana Souza",
                customer_email="ana@example.com",
                shipping_address="1 Main Street, Springfield",
            )
        )

    return _checkout
