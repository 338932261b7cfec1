import uuid

import pytest

pytestmark = pytest.mark.unit


class TestBaseModel:
    def test_primary_key_is_uuid7(self, make_product):
        product = make_product()
        assert isinstance(product.id, uuid.UUID)
        assert product.id.version == 7

    def test_ids_are_time_ordered(self, make_product):
        first = make_product(name="First")
        second = make_product(name="Second")
        assert first.id < second.id

    def test_update_fields_also_refreshes_updated_at(self, make_product):
        product = make_product()
        before = product.updated_at
        product.description = "changed"
        product.save(update_fields=["description"])
        product.refresh_from_db()
        assert product.updated_at >= before
        assert product.description == "changed"
