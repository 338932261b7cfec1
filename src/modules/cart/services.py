"""Cart service layer (Use Cases).

Manages the per-session shopping cart.  Stock checks here are advisory:
the cart never reserves or decrements stock, it only refuses quantities
the product could not satisfy right now.  Stock is committed at checkout
by ``OrderService``.

Every operation validates the session id first, and every line lookup by
id checks that the line belongs to the calling session.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.cart.dtos import CartLineDTO, CartSnapshotDTO
from modules.cart.exceptions import (
    CartItemNotFound,
    CartItemNotInSession,
    InvalidQuantity,
    InvalidSession,
)
from modules.cart.models import CartItem
from modules.core.exceptions import ConcurrencyConflict, InsufficientStock
from modules.products.exceptions import InactiveProduct, ProductNotFound

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for cart use-cases.

    Receives its repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._carts = cart_repository
        self._products = product_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, session_id: str) -> CartSnapshotDTO:
        """Current lines priced at live product prices.

        An unknown session is simply an empty cart.
        """
        session_id = self._validate_session(session_id)
        return self._snapshot(session_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_item(self, session_id: str, product_id, quantity: int) -> CartSnapshotDTO:
        """Add ``quantity`` units, creating the line or incrementing it.

        Raises:
            InvalidSession: blank session id.
            InvalidQuantity: ``quantity`` < 1.
            ProductNotFound: unknown product.
            InactiveProduct: the product is not for sale.
            InsufficientStock: existing + requested exceeds current stock.
            ConcurrencyConflict: a racing request created the line and it
                was removed again before it could be incremented.
        """
        session_id = self._validate_session(session_id)
        self._validate_quantity(quantity)
        product = self._active_product(product_id)
        log = logger.bind(session_id=session_id, product_id=str(product.id))

        line = self._carts.get_for_session_and_product(
            session_id, str(product.id), for_update=True
        )
        if line is None:
            self._check_stock(product, quantity)
            line = CartItem(session_id=session_id, product=product, quantity=quantity)
            line.subtotal = line.compute_subtotal()
            if self._carts.insert(line) is None:
                # Lost the race to create this line: fold into the winner's.
                line = self._carts.get_for_session_and_product(
                    session_id, str(product.id), for_update=True
                )
                if line is None:
                    log.warning("cart.line_vanished")
                    raise ConcurrencyConflict(
                        "The cart changed while the item was being added; "
                        "please retry.",
                        resource="cart_item",
                    )
                self._increment(line, product, quantity)
        else:
            self._increment(line, product, quantity)

        log.info("cart.item_added", quantity=quantity, line_quantity=line.quantity)
        return self._snapshot(session_id)

    @transaction.atomic
    def update_item(self, session_id: str, item_id, quantity: int) -> CartSnapshotDTO:
        """Set a line's quantity (absolute, not a delta).

        Raises:
            InvalidSession, InvalidQuantity, CartItemNotFound,
            CartItemNotInSession, InsufficientStock.
        """
        session_id = self._validate_session(session_id)
        self._validate_quantity(quantity)
        line = self._owned_line(session_id, item_id)

        product = self._products.get_by_id(str(line.product_id))
        if product is None:
            raise ProductNotFound(line.product_id)
        self._check_stock(product, quantity)

        line.product = product
        line.quantity = quantity
        line.subtotal = line.compute_subtotal()
        self._carts.save(line)

        logger.info(
            "cart.item_updated",
            session_id=session_id,
            item_id=str(line.id),
            quantity=quantity,
        )
        return self._snapshot(session_id)

    @transaction.atomic
    def remove_item(self, session_id: str, item_id) -> CartSnapshotDTO:
        session_id = self._validate_session(session_id)
        line = self._owned_line(session_id, item_id)
        self._carts.delete(str(line.id))
        logger.info("cart.item_removed", session_id=session_id, item_id=str(line.id))
        return self._snapshot(session_id)

    @transaction.atomic
    def clear(self, session_id: str) -> None:
        """Remove every line of the session.  Clearing an empty cart is a no-op."""
        session_id = self._validate_session(session_id)
        removed = self._carts.delete_for_session(session_id)
        if removed:
            logger.info("cart.cleared", session_id=session_id, removed=removed)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_session(session_id: str) -> str:
        if session_id is None or not str(session_id).strip():
            raise InvalidSession()
        return str(session_id).strip()

    @staticmethod
    def _validate_quantity(quantity: int) -> None:
        if quantity is None or quantity < 1:
            raise InvalidQuantity(quantity)

    def _active_product(self, product_id) -> Product:
        product = self._products.get_by_id(str(product_id))
        if product is None:
            raise ProductNotFound(product_id)
        if not product.is_active:
            raise InactiveProduct(product.id, product.name)
        return product

    def _owned_line(self, session_id: str, item_id) -> CartItem:
        line = self._carts.get_by_id(str(item_id))
        if line is None:
            raise CartItemNotFound(item_id)
        if line.session_id != session_id:
            logger.warning(
                "cart.cross_session_access",
                session_id=session_id,
                item_id=str(item_id),
            )
            raise CartItemNotInSession(item_id, session_id)
        return line

    @staticmethod
    def _check_stock(product: Product, quantity: int) -> None:
        if not product.has_stock(quantity):
            raise InsufficientStock(
                f"Insufficient stock for product '{product.name}': "
                f"requested {quantity}, available {product.stock_quantity}.",
                identifier=product.id,
                requested=quantity,
                available=product.stock_quantity,
            )

    def _increment(self, line: CartItem, product: Product, quantity: int) -> None:
        """Add to a line the caller has locked with ``for_update``."""
        new_quantity = line.quantity + quantity
        self._check_stock(product, new_quantity)
        line.product = product
        line.quantity = new_quantity
        line.subtotal = line.compute_subtotal()
        self._carts.save(line)

    def _snapshot(self, session_id: str) -> CartSnapshotDTO:
        items = []
        total = Decimal("0.00")
        for line in self._carts.list_for_session(session_id):
            product = line.product
            subtotal = product.price * line.quantity
            total += subtotal
            items.append(
                CartLineDTO(
                    id=line.id,
                    product_id=product.id,
                    product_name=product.name,
                    unit_price=product.price,
                    quantity=line.quantity,
                    subtotal=subtotal,
                    available=product.is_active and product.has_stock(line.quantity),
                )
            )
        return CartSnapshotDTO(
            session_id=session_id,
            items=items,
            total=total,
            item_count=sum(item.quantity for item in items),
        )
