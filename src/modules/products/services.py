"""Product service layer (Use Cases).

Catalog operations for the Product aggregate: browse, search, create,
edit and deactivate.  Persistence goes through the injected
``IProductRepository``; stock changes are delegated to ``StockService`` so
every stock write carries the version check.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet

from modules.core.exceptions import ConcurrencyConflict
from modules.products.exceptions import ProductNotFound
from modules.products.models import Product
from modules.products.stock import StockService

if TYPE_CHECKING:
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for catalog use-cases.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(
        self,
        repository: IProductRepository,
        stock_service: Optional[StockService] = None,
    ) -> None:
        self._repo = repository
        self._stock = stock_service or StockService(repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        product = Product(
            name=dto.name,
            description=dto.description,
            price=dto.price,
            category=dto.category,
            stock_quantity=dto.stock_quantity,
            image_url=dto.image_url,
            is_active=dto.is_active,
        )
        product = self._repo.save(product)
        logger.info(
            "product.created",
            product_id=str(product.id),
            category=product.category,
            stock=product.stock_quantity,
        )
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Apply the supplied fields with version-checked writes.

        Catalog fields and stock are written in two conditional updates
        inside one transaction.  When ``dto.version`` is given, the first
        write must match it and the second is chained to the version the
        first produced.

        Raises:
            ProductNotFound: the product does not exist.
            ConcurrencyConflict: ``dto.version`` is stale, or retries ran out.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(id)

        log = logger.bind(product_id=str(id))
        expected_version = dto.version
        changes = dto.catalog_changes()

        if changes:
            product = self._write_fields(id, changes, expected_version)
            if expected_version is not None:
                expected_version = product.version

        if dto.stock_quantity is not None:
            product = self._stock.set_quantity(
                id, dto.stock_quantity, expected_version=expected_version
            )
        elif not changes and expected_version is not None:
            if product.version != expected_version:
                raise ConcurrencyConflict(
                    f"Product {id} was modified since version {expected_version}.",
                    resource="product",
                    identifier=id,
                )

        log.info("product.updated", fields=sorted(changes), version=product.version)
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Soft-delete a product by deactivating it.

        Raises:
            ProductNotFound: the product does not exist.
        """
        if not self._repo.delete(id):
            raise ProductNotFound(id)
        logger.info("product.soft_deleted", product_id=str(id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """Return active products unless ``filters`` says otherwise."""
        return list(self.catalog(filters))

    def catalog(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Product]:
        """Lazy version of ``list_products`` for paginated listings."""
        effective: Dict[str, Any] = {"is_active": True}
        if filters:
            effective.update(filters)
        return self._repo.query(effective)

    def get_product(self, id: str) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(id)
        return product

    def list_categories(self) -> List[str]:
        return self._repo.list_categories()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write_fields(
        self, id: str, changes: Dict[str, Any], expected_version: Optional[int]
    ) -> Product:
        if expected_version is not None:
            updated = self._repo.compare_and_swap(id, expected_version, changes)
            if updated is None:
                raise ConcurrencyConflict(
                    f"Product {id} was modified since version {expected_version}.",
                    resource="product",
                    identifier=id,
                )
            return updated

        attempts = settings.STOCK_UPDATE_MAX_RETRIES
        for _ in range(attempts):
            current = self._repo.get_by_id(id)
            if current is None:
                raise ProductNotFound(id)
            updated = self._repo.compare_and_swap(id, current.version, changes)
            if updated is not None:
                return updated
        raise ConcurrencyConflict(
            f"Product {id} kept changing; gave up after {attempts} attempts.",
            resource="product",
            identifier=id,
        )
