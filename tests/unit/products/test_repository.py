from decimal import Decimal
from uuid import uuid4

import pytest

from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return ProductDjangoRepository()


class TestLookups:
    def test_get_by_id(self, repo, make_product):
        product = make_product()
        assert repo.get_by_id(str(product.id)) == product

    def test_unknown_id_is_none(self, repo):
        assert repo.get_by_id(str(uuid4())) is None

    def test_malformed_id_is_none(self, repo):
        assert repo.get_by_id("not-a-uuid") is None

    def test_query_filters(self, repo, make_product):
        make_product(name="Active")
        make_product(name="Retired", is_active=False)
        names = [p.name for p in repo.query({"is_active": True})]
        assert names == ["Active"]

    def test_list_categories_distinct_sorted_active_only(self, repo, make_product):
        make_product(category="Sports")
        make_product(category="Books")
        make_product(category="Books")
        make_product(category="Hidden", is_active=False)
        assert repo.list_categories() == ["Books", "Sports"]


class TestSave:
    def test_save_inserts_with_version_one(self, repo):
        from modules.products.models import Product

        product = repo.save(Product(name="New", price=Decimal("1.00"), category="X"))
        assert product.version == 1
        assert Product.objects.filter(id=product.id).exists()

    def test_save_refuses_existing_rows(self, repo, make_product):
        product = make_product()
        product.stock_quantity = 99
        with pytest.raises(ValueError):
            repo.save(product)


class TestCompareAndSwap:
    def test_matching_version_applies_and_bumps(self, repo, make_product):
        product = make_product(stock_quantity=10)
        updated = repo.compare_and_swap(str(product.id), 1, {"stock_quantity": 7})
        assert updated.stock_quantity == 7
        assert updated.version == 2

    def test_stale_version_changes_nothing(self, repo, make_product):
        product = make_product(stock_quantity=10)
        repo.compare_and_swap(str(product.id), 1, {"stock_quantity": 9})

        assert repo.compare_and_swap(str(product.id), 1, {"stock_quantity": 0}) is None
        product.refresh_from_db()
        assert product.stock_quantity == 9
        assert product.version == 2

    def test_unknown_product_is_none(self, repo):
        assert repo.compare_and_swap(str(uuid4()), 1, {"stock_quantity": 1}) is None

    def test_updates_timestamp(self, repo, make_product):
        product = make_product()
        updated = repo.compare_and_swap(str(product.id), 1, {"name": "Renamed"})
        assert updated.updated_at >= product.updated_at

    @pytest.mark.parametrize("field", ["id", "version", "created_at", "updated_at"])
    def test_bookkeeping_fields_are_rejected(self, repo, make_product, field):
        product = make_product()
        with pytest.raises(ValueError):
            repo.compare_and_swap(str(product.id), 1, {field: None})


class TestDelete:
    def test_delete_deactivates_and_bumps_version(self, repo, make_product):
        product = make_product()
        assert repo.delete(str(product.id)) is True
        product.refresh_from_db()
        assert product.is_active is False
        assert product.version == 2

    def test_delete_unknown(self, repo):
        assert repo.delete(str(uuid4())) is False
