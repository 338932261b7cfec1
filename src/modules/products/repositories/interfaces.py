"""Product repository interface.

Extends ``IRepository[Product]`` with the concurrency contract the stock
rules rely on: a compare-and-swap keyed by ``(id, expected_version)``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def query(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """Lazy, filterable product query (feeds pagination and filter backends)."""

    @abstractmethod
    def compare_and_swap(
        self, id: str, expected_version: int, changes: Dict[str, Any]
    ) -> Optional[Product]:
        """Apply ``changes`` only if the stored version equals ``expected_version``.

        On success the version is incremented and the fresh row returned.
        Returns ``None`` when the version no longer matches (or the row is
        gone); the caller decides whether to re-read and retry.
        """

    @abstractmethod
    def list_categories(self) -> List[str]:
        """Return the distinct categories of active products, sorted."""
