from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from modules.products.models import Product

pytestmark = pytest.mark.unit


class TestProductModel:
    def test_new_product_starts_at_version_one(self, make_product):
        assert make_product().version == 1

    def test_has_stock(self, make_product):
        product = make_product(stock_quantity=3)
        assert product.has_stock(3)
        assert not product.has_stock(4)

    def test_str_includes_version(self, make_product):
        assert str(make_product(name="Lamp")) == "Lamp (v1)"

    def test_clean_rejects_negative_price(self):
        product = Product(name="Bad", price=Decimal("-1.00"), category="X")
        with pytest.raises(ValidationError):
            product.clean()

    def test_db_rejects_negative_price(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.create(name="Bad", price=Decimal("-0.01"), category="X")

    def test_db_rejects_negative_stock(self, make_product):
        product = make_product(stock_quantity=1)
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.filter(id=product.id).update(stock_quantity=-1)
