"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

- ``CreateOrderDTO``: checkout input (session + customer details).
- ``PaymentDTO``: the already-decided outcome of a payment attempt.
- ``OrderOutputDTO``: order with its lines and status history.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem, OrderStatusHistory


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for checkout requests.

    The order lines are not part of the request: they are read from the
    session's cart.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    customer_name: str
    customer_email: EmailStr
    shipping_address: str
    delivery_notes: str = ""

    @field_validator("session_id", "customer_name", "shipping_address")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Must not be blank.")
        return v.strip()


class PaymentDTO(BaseModel):
    """Outcome reported by the payment collaborator."""

    model_config = ConfigDict(frozen=True)

    successful: bool
    transaction_reference: Optional[str] = None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    price_at_purchase: Decimal
    subtotal: Decimal


class StatusHistoryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    old_status: Optional[str]
    new_status: str
    notes: str
    created_at: datetime

    @classmethod
    def from_entity(cls, history: OrderStatusHistory) -> StatusHistoryDTO:
        return cls(
            id=history.id,
            old_status=history.old_status,
            new_status=history.new_status,
            notes=history.notes,
            created_at=history.created_at,
        )


class OrderOutputDTO(BaseModel):
    """Immutable DTO for order API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    customer_name: str
    customer_email: str
    shipping_address: str
    delivery_notes: str
    status: str
    payment_status: str
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOutputDTO]
    history: List[StatusHistoryDTO]

    @classmethod
    def from_entity(
        cls,
        order: Order,
        items: Iterable[OrderItem],
        history: Iterable[OrderStatusHistory],
    ) -> OrderOutputDTO:
        """Build the output DTO; ``items`` should have ``product`` loaded."""
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            shipping_address=order.shipping_address,
            delivery_notes=order.delivery_notes,
            status=order.status,
            payment_status=order.payment_status,
            total_amount=order.total_amount,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[
                OrderItemOutputDTO(
                    id=item.id,
                    product_id=item.product_id,
                    product_name=item.product.name,
                    quantity=item.quantity,
                    price_at_purchase=item.price_at_purchase,
                    subtotal=item.subtotal,
                )
                for item in items
            ],
            history=[StatusHistoryDTO.from_entity(h) for h in history],
        )
