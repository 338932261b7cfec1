"""Stock arithmetic under optimistic concurrency.

``StockService`` is the only code path that changes
``Product.stock_quantity``.  Every change is a read-modify-write:

1. read the product (stock + version);
2. compute the new quantity, refusing to go below zero;
3. ``compare_and_swap`` on ``(id, version)``;
4. on a version mismatch, go back to 1, at most ``max_retries`` attempts.

A negative result is a business outcome (``InsufficientStock``) and is
never retried: re-reading can only make it worse or leave it unchanged.
When the attempts run out the caller gets ``ConcurrencyConflict``.

The service holds no locks and opens no transaction of its own; the
caller's ``transaction.atomic`` block decides what rolls back together.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

import structlog
from django.conf import settings

from modules.core.exceptions import (
    ConcurrencyConflict,
    InsufficientStock,
    InvalidOperation,
)
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class StockService:
    """Version-checked stock decrement, restore and overwrite."""

    def __init__(
        self,
        product_repository: IProductRepository,
        max_retries: Optional[int] = None,
    ) -> None:
        self._repo = product_repository
        if max_retries is None:
            max_retries = settings.STOCK_UPDATE_MAX_RETRIES
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1.")
        self._max_retries = max_retries

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def decrement(self, product_id, quantity: int) -> Product:
        """Commit a sale of ``quantity`` units.

        Raises:
            ProductNotFound: the product does not exist.
            InsufficientStock: fewer than ``quantity`` units are left.
            ConcurrencyConflict: every attempt lost a race.
        """
        self._require_positive(quantity)

        def compute(product: Product) -> int:
            remaining = product.stock_quantity - quantity
            if remaining < 0:
                raise InsufficientStock(
                    f"Insufficient stock for product '{product.name}': "
                    f"requested {quantity}, available {product.stock_quantity}.",
                    identifier=product.id,
                    requested=quantity,
                    available=product.stock_quantity,
                )
            return remaining

        product = self._apply(product_id, compute, operation="decrement")
        logger.info(
            "stock.decremented",
            product_id=str(product_id),
            quantity=quantity,
            remaining=product.stock_quantity,
            version=product.version,
        )
        return product

    def restore(self, product_id, quantity: int) -> Product:
        """Add ``quantity`` units back.  Additive: edits made since the sale survive."""
        self._require_positive(quantity)
        product = self._apply(
            product_id,
            lambda current: current.stock_quantity + quantity,
            operation="restore",
        )
        logger.info(
            "stock.restored",
            product_id=str(product_id),
            quantity=quantity,
            restored_stock=product.stock_quantity,
            version=product.version,
        )
        return product

    def set_quantity(
        self,
        product_id,
        quantity: int,
        expected_version: Optional[int] = None,
    ) -> Product:
        """Overwrite the stock level (manual catalog edit).

        With ``expected_version`` the write is tied to the caller's earlier
        read: a mismatch raises ``ConcurrencyConflict`` at once instead of
        retrying over a change the caller never saw.
        """
        if quantity < 0:
            raise InvalidOperation(
                "Stock quantity cannot be negative.",
                resource="product",
                identifier=product_id,
            )

        if expected_version is not None:
            product = self._repo.compare_and_swap(
                str(product_id), expected_version, {"stock_quantity": quantity}
            )
            if product is None:
                if self._repo.get_by_id(str(product_id)) is None:
                    raise ProductNotFound(product_id)
                raise ConcurrencyConflict(
                    f"Product {product_id} was modified since version "
                    f"{expected_version} was read.",
                    resource="product",
                    identifier=product_id,
                )
        else:
            product = self._apply(
                product_id, lambda _current: quantity, operation="set"
            )

        logger.info(
            "stock.set",
            product_id=str(product_id),
            stock=product.stock_quantity,
            version=product.version,
        )
        return product

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply(
        self,
        product_id,
        compute: Callable[[Product], int],
        operation: str,
    ) -> Product:
        for attempt in range(1, self._max_retries + 1):
            current = self._repo.get_by_id(str(product_id))
            if current is None:
                raise ProductNotFound(product_id)

            new_quantity = compute(current)
            updated = self._repo.compare_and_swap(
                str(product_id),
                current.version,
                {"stock_quantity": new_quantity},
            )
            if updated is not None:
                return updated

            logger.warning(
                "stock.conflict_retry",
                product_id=str(product_id),
                operation=operation,
                attempt=attempt,
                max_retries=self._max_retries,
            )

        logger.error(
            "stock.conflict_exhausted",
            product_id=str(product_id),
            operation=operation,
            attempts=self._max_retries,
        )
        raise ConcurrencyConflict(
            f"Stock for product {product_id} kept changing; "
            f"gave up after {self._max_retries} attempts.",
            resource="product",
            identifier=product_id,
        )

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if quantity < 1:
            raise ValueError(f"Quantity must be at least 1, got {quantity}.")
