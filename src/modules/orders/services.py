"""Order service layer (Use Cases).

Turns a session's cart into an order, runs the order and payment state
machines, and restores stock on cancellation.  Every write operation is
atomic: the service defines the unit-of-work boundary.

Stock is committed through ``StockService`` (version-checked, bounded
retries) rather than row locks on products.  Order rows, which belong to
a single order, are locked with ``select_for_update`` for payment,
cancellation and status changes, so two racing cancellations cannot both
restock.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet

from modules.core.exceptions import InsufficientStock
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import OrderOutputDTO
from modules.orders.exceptions import (
    EmptyCart,
    InvalidOrderStatus,
    OrderNotFound,
    PaymentAlreadyProcessed,
)
from modules.orders.models import Order, OrderItem
from modules.orders.numbering import generate_order_number
from modules.products.exceptions import InactiveProduct, ProductNotFound
from modules.products.stock import StockService

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.orders.dtos import CreateOrderDTO, PaymentDTO
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

OrderNumberGenerator = Callable[[Callable[[str], bool]], str]


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
        stock_service: Optional[StockService] = None,
        order_number_generator: Optional[OrderNumberGenerator] = None,
    ) -> None:
        self._order_repo = order_repository
        self._cart_repo = cart_repository
        self._product_repo = product_repository
        self._stock = stock_service or StockService(product_repository)
        self._generate_number = order_number_generator or generate_order_number

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Check out the session's cart.

        Steps:
        1. Load the cart lines; an empty cart is rejected.
        2. For each line (sorted by product id), re-validate the product
           as persisted now: it exists, is active and has enough stock.
        3. Build the order lines, snapshotting the current price.
        4. Commit every stock decrement through ``StockService``.
        5. Persist the order (PENDING / PENDING) and its first history entry.
        6. Remove the converted cart lines.

        Any failure rolls back all of it, including decrements already made.

        Raises:
            EmptyCart: the session has no cart lines.
            ProductNotFound: a product no longer exists.
            InactiveProduct: a product was deactivated.
            InsufficientStock: a line exceeds the stock left.
            ConcurrencyConflict: a decrement kept losing version races.
        """
        log = logger.bind(session_id=dto.session_id)
        log.info("order.creation_started")

        lines = self._cart_repo.list_for_session(dto.session_id)
        if not lines:
            raise EmptyCart(dto.session_id)

        items: List[OrderItem] = []
        total = Decimal("0.00")
        for line in sorted(lines, key=lambda ln: str(ln.product_id)):
            product = self._product_repo.get_by_id(str(line.product_id))
            if product is None:
                raise ProductNotFound(line.product_id)
            if not product.is_active:
                raise InactiveProduct(product.id, product.name)
            if not product.has_stock(line.quantity):
                raise InsufficientStock(
                    f"Insufficient stock for product '{product.name}': "
                    f"requested {line.quantity}, available {product.stock_quantity}.",
                    identifier=product.id,
                    requested=line.quantity,
                    available=product.stock_quantity,
                )

            subtotal = product.price * line.quantity
            items.append(
                OrderItem(
                    product=product,
                    quantity=line.quantity,
                    price_at_purchase=product.price,
                    subtotal=subtotal,
                )
            )
            total += subtotal

        for item in items:
            self._stock.decrement(item.product_id, item.quantity)

        order = Order(
            order_number=self._generate_number(self._order_repo.exists_order_number),
            customer_name=dto.customer_name,
            customer_email=dto.customer_email,
            shipping_address=dto.shipping_address,
            delivery_notes=dto.delivery_notes,
            total_amount=total,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )
        order = self._order_repo.create(order, items)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=OrderStatus.PENDING,
            notes="Order created",
        )

        # Only the lines converted above; anything added meanwhile stays.
        self._cart_repo.delete_lines([line.id for line in lines])

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(total),
            item_count=len(items),
        )
        return order

    @transaction.atomic
    def process_payment(self, order_id, dto: PaymentDTO) -> Order:
        """Record the outcome of a payment attempt.

        Success completes the payment and confirms a PENDING order.  Failure
        marks the payment FAILED and leaves the order status alone; a later
        attempt may still succeed.

        Raises:
            OrderNotFound: unknown order.
            InvalidOrderStatus: the order is cancelled, or the payment
                cannot move to the requested state.
            PaymentAlreadyProcessed: the payment is already completed.
        """
        order = self._lock_order(order_id)
        log = logger.bind(
            order_id=str(order.id),
            payment_status=order.payment_status,
            successful=dto.successful,
            transaction_reference=dto.transaction_reference,
        )

        if order.status == OrderStatus.CANCELLED:
            log.warning("order.payment_rejected", reason="cancelled")
            raise InvalidOrderStatus(
                f"Cannot process payment for cancelled order {order.order_number}.",
                order_id=order.id,
            )
        if order.payment_status == PaymentStatus.COMPLETED:
            log.warning("order.payment_rejected", reason="already_completed")
            raise PaymentAlreadyProcessed(order.id)

        target = PaymentStatus.COMPLETED if dto.successful else PaymentStatus.FAILED
        if not order.can_transition_payment_to(target):
            raise InvalidOrderStatus(
                f"Cannot move payment from {order.payment_status} to {target}.",
                order_id=order.id,
            )

        order.payment_status = target
        old_status = order.status
        confirm = dto.successful and order.status == OrderStatus.PENDING
        if confirm:
            order.status = OrderStatus.CONFIRMED
        self._order_repo.save(order)

        if confirm:
            self._order_repo.add_history(
                order_id=order.id,
                new_status=OrderStatus.CONFIRMED,
                old_status=old_status,
                notes="Payment completed",
            )

        log.info("order.payment_processed", new_payment_status=target)
        return order

    @transaction.atomic
    def cancel_order(self, order_id, notes: str = "") -> Order:
        """Cancel an order, restocking and refunding when it was paid.

        Raises:
            OrderNotFound: unknown order.
            InvalidOrderStatus: the order is shipped, delivered or already
                cancelled.
        """
        order = self._lock_order(order_id)
        self._cancel(order, notes)
        return order

    @transaction.atomic
    def update_order_status(self, order_id, new_status: str, notes: str = "") -> Order:
        """Move an order along the fulfilment state machine.

        A move to CANCELLED takes the cancellation path so the restock and
        refund rules always apply.

        Raises:
            OrderNotFound: unknown order.
            InvalidOrderStatus: unknown status, or a transition not allowed
                from the current status.
        """
        target = self._parse_status(new_status)
        order = self._lock_order(order_id)

        if target == OrderStatus.CANCELLED:
            self._cancel(order, notes)
            return order

        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=target,
        )
        if not order.can_transition_to(target):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition order {order.order_number} "
                f"from {order.status} to {target}.",
                order_id=order.id,
            )

        old_status = order.status
        order.status = target
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=target,
            old_status=old_status,
            notes=notes,
        )

        log.info("order.status_updated")
        return order

    @transaction.atomic
    def delete_order(self, order_id) -> None:
        """Delete a cancelled order with its lines and history.

        Raises:
            OrderNotFound: unknown order.
            InvalidOrderStatus: the order is not cancelled.
        """
        order = self._lock_order(order_id)
        if order.status != OrderStatus.CANCELLED:
            raise InvalidOrderStatus(
                f"Only cancelled orders can be deleted; "
                f"order {order.order_number} is {order.status}.",
                order_id=order.id,
            )
        self._order_repo.delete(str(order.id))
        logger.info("order.removed", order_id=str(order.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(order_id)
        return order

    def get_order_by_number(self, order_number: str) -> Order:
        order = self._order_repo.get_by_order_number(order_number)
        if not order:
            raise OrderNotFound(order_number, field="order_number")
        return order

    def list_orders_by_customer_email(self, email: str) -> List[Order]:
        return self._order_repo.list_by_customer_email(email)

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return self._order_repo.list(filters)

    def orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """Lazy version of ``list_orders`` for paginated listings."""
        return self._order_repo.query(filters)

    def describe(self, order: Order) -> OrderOutputDTO:
        """Order with its lines and status history, ready for output."""
        return OrderOutputDTO.from_entity(
            order,
            self._order_repo.list_items(order.id),
            self._order_repo.list_history(order.id),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _lock_order(self, order_id) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(order_id)
        return order

    @staticmethod
    def _parse_status(value: str) -> str:
        try:
            return OrderStatus(str(value).strip().upper())
        except ValueError:
            raise InvalidOrderStatus(f"Unknown order status '{value}'.") from None

    def _cancel(self, order: Order, notes: str) -> None:
        """Cancel an order already locked by the caller's transaction."""
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            payment_status=order.payment_status,
        )

        if order.status == OrderStatus.CANCELLED:
            raise InvalidOrderStatus(
                f"Order {order.order_number} is already cancelled.",
                order_id=order.id,
            )
        if order.status == OrderStatus.DELIVERED:
            raise InvalidOrderStatus(
                f"Order {order.order_number} was delivered and cannot be cancelled.",
                order_id=order.id,
            )
        if order.status == OrderStatus.SHIPPED:
            raise InvalidOrderStatus(
                f"Order {order.order_number} has shipped and cannot be cancelled.",
                order_id=order.id,
            )

        paid = order.is_paid
        if paid or settings.RESTOCK_UNPAID_CANCELLATIONS:
            items = sorted(
                self._order_repo.list_items(order.id),
                key=lambda item: str(item.product_id),
            )
            for item in items:
                self._stock.restore(item.product_id, item.quantity)
            log.info("order.stock_released", item_count=len(items))

        if paid:
            order.payment_status = PaymentStatus.REFUNDED

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=OrderStatus.CANCELLED,
            old_status=old_status,
            notes=notes or "Order cancelled",
        )

        log.info("order.cancelled", refunded=paid)
