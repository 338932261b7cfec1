"""Cart domain exceptions.

Specialisations of the storefront error kinds in ``modules.core.exceptions``.
"""

from __future__ import annotations

from modules.core.exceptions import InvalidOperation, NotFound


class CartItemNotFound(NotFound):
    def __init__(self, item_id) -> None:
        super().__init__(
            f"Cart item {item_id} not found.",
            resource="cart_item",
            identifier=item_id,
        )


class CartItemNotInSession(InvalidOperation):
    """The line exists but belongs to a different session.

    The message names only the caller's session.
    """

    def __init__(self, item_id, session_id: str) -> None:
        super().__init__(
            f"Cart item {item_id} does not belong to session '{session_id}'.",
            resource="cart_item",
            identifier=item_id,
        )


class InvalidSession(InvalidOperation):
    def __init__(self) -> None:
        super().__init__("A non-blank session id is required.", resource="cart")


class InvalidQuantity(InvalidOperation):
    def __init__(self, quantity) -> None:
        super().__init__(
            f"Quantity must be at least 1, got {quantity}.",
            resource="cart_item",
        )
