"""Cart DTOs.

``CartSnapshotDTO`` is what every cart read and mutation returns: the
session's lines priced at the products' *current* prices, plus the total.
Stored subtotals are not trusted for display.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    product_name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    available: bool


class CartSnapshotDTO(BaseModel):
    """Immutable view of one session's cart."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    items: List[CartLineDTO]
    total: Decimal
    item_count: int

    @property
    def is_empty(self) -> bool:
        return not self.items
