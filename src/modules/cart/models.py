"""Cart line model.

A cart is the set of ``CartItem`` rows sharing a ``session_id``; there is
no cart table.  One row per (session, product): adding a product already
in the cart increments the existing line.

``subtotal`` is stored and recomputed explicitly by ``CartService`` on
every write, from the product's current price.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from modules.core.models import BaseModel
from modules.products.models import Product


class CartItem(BaseModel):
    """Desired quantity of one product in one shopping session."""

    session_id = models.CharField(max_length=255, db_index=True)
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(default=1)
    subtotal = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["session_id", "product"],
                name="cart_items_unique_session_product",
            ),
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    def compute_subtotal(self) -> Decimal:
        return self.product.price * self.quantity

    def __str__(self) -> str:
        return f"{self.session_id}: {self.quantity} x {self.product_id}"
