"""Product domain exceptions.

Specialisations of the shared error kinds in ``modules.core.exceptions``;
callers may catch either the specific class or the kind.
"""

from __future__ import annotations

from modules.core.exceptions import InvalidOperation, NotFound


class ProductNotFound(NotFound):
    """The requested product does not exist."""

    def __init__(self, product_id) -> None:
        super().__init__(
            f"Product {product_id} not found.",
            resource="product",
            identifier=product_id,
        )


class InactiveProduct(InvalidOperation):
    """The product is deactivated and cannot be sold."""

    def __init__(self, product_id, name: str = "") -> None:
        label = f"'{name}'" if name else str(product_id)
        super().__init__(
            f"Product {label} is not available.",
            resource="product",
            identifier=product_id,
        )
