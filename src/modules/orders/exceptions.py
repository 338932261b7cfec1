"""Order domain exceptions.

Specialisations of the storefront error kinds; the DRF exception handler
renders them by kind.
"""

from __future__ import annotations

from modules.core.exceptions import InvalidOperation, NotFound


class OrderNotFound(NotFound):
    """The requested order does not exist."""

    def __init__(self, identifier, field: str = "id") -> None:
        label = "number" if field == "order_number" else "id"
        super().__init__(
            f"Order with {label} {identifier} not found.",
            resource="order",
            identifier=identifier,
        )


class EmptyCart(InvalidOperation):
    """Checkout was attempted with no cart lines."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Cart for session '{session_id}' is empty.",
            resource="cart",
            identifier=session_id,
        )


class InvalidOrderStatus(InvalidOperation):
    """A status transition outside the allowed table was attempted."""

    def __init__(self, message: str, order_id=None) -> None:
        super().__init__(message, resource="order", identifier=order_id)


class PaymentAlreadyProcessed(InvalidOperation):
    def __init__(self, order_id) -> None:
        super().__init__(
            f"Payment for order {order_id} has already been completed.",
            resource="order",
            identifier=order_id,
        )
