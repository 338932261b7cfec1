"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Look-ups follow the Null Object pattern: unknown or malformed ids yield
``None`` and the services decide how to report it.

Every mutation of an existing row goes through ``compare_and_swap``, a
single conditional ``UPDATE ... WHERE id = ? AND version = ?`` that bumps
the version in the same statement.  No row locks are held.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

_IMMUTABLE_FIELDS = frozenset({"id", "version", "created_at", "updated_at"})


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def query(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Product]:
        """Build a product QuerySet with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"category__iexact": "books", "name__icontains": "guide"}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        return list(self.query(filters))

    def list_categories(self) -> List[str]:
        return list(
            Product.objects.filter(is_active=True)
            .order_by("category")
            .values_list("category", flat=True)
            .distinct()
        )

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Insert a new product.

        Existing rows are never written with a plain ``save()``: that would
        bypass the version check.  Use ``compare_and_swap`` instead.
        """
        if not entity._state.adding:
            raise ValueError(
                "Existing products must be updated through compare_and_swap()."
            )
        entity.version = 1
        entity.save(force_insert=True)
        logger.info("product.saved", product_id=str(entity.id), name=entity.name)
        return entity

    def compare_and_swap(
        self, id: str, expected_version: int, changes: Dict[str, Any]
    ) -> Optional[Product]:
        forbidden = _IMMUTABLE_FIELDS.intersection(changes)
        if forbidden:
            raise ValueError(f"Fields cannot be changed directly: {sorted(forbidden)}")

        try:
            updated = Product.objects.filter(id=id, version=expected_version).update(
                **changes,
                version=F("version") + 1,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return None

        if updated == 0:
            logger.info(
                "product.version_conflict",
                product_id=str(id),
                expected_version=expected_version,
            )
            return None
        return Product.objects.get(id=id)

    def delete(self, id: str) -> bool:
        """Deactivate a product by ID, bumping its version.

        Returns ``True`` if the product was found, ``False`` otherwise.
        Deactivation is idempotent from the caller's point of view.
        """
        try:
            updated = Product.objects.filter(id=id).update(
                is_active=False,
                version=F("version") + 1,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return False
        if updated:
            logger.info("product.deactivated", product_id=str(id))
        return bool(updated)
