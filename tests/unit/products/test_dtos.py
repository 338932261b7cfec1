from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.products.dtos import CreateProductDTO, UpdateProductDTO

pytestmark = pytest.mark.unit


class TestCreateProductDTO:
    def test_defaults(self):
        dto = CreateProductDTO(name="Mug", price=Decimal("5.00"), category="Home")
        assert dto.stock_quantity == 0
        assert dto.is_active is True

    @pytest.mark.parametrize("field", ["name", "category"])
    def test_blank_text_rejected(self, field):
        data = {"name": "Mug", "price": Decimal("5.00"), "category": "Home", field: "  "}
        with pytest.raises(ValidationError):
            CreateProductDTO(**data)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="Mug", price=Decimal("-1"), category="Home")

    def test_free_product_allowed(self):
        dto = CreateProductDTO(name="Sticker", price=Decimal("0"), category="Promo")
        assert dto.price == Decimal("0")

    def test_frozen(self):
        dto = CreateProductDTO(name="Mug", price=Decimal("5.00"), category="Home")
        with pytest.raises(ValidationError):
            dto.name = "Cup"


class TestUpdateProductDTO:
    def test_catalog_changes_skip_stock_and_unset_fields(self):
        dto = UpdateProductDTO(name="Cup", stock_quantity=3, version=2)
        assert dto.catalog_changes() == {"name": "Cup"}

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            UpdateProductDTO(stock_quantity=-1)
