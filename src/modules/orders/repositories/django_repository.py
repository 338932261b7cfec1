"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Aggregate
writes (create, delete) are wrapped in ``transaction.atomic()``.

Concurrency control on status and payment changes uses
``select_for_update()``: the order row is locked for the rest of the
caller's transaction.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_STATUS_FIELDS = ["status", "payment_status"]


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, order: Order, items: Sequence[OrderItem]) -> Order:
        order.save(force_insert=True)
        for item in items:
            item.order = order
        OrderItem.objects.bulk_create(items)

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Order.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        return Order.objects.filter(order_number=order_number).first()

    def exists_order_number(self, order_number: str) -> bool:
        return Order.objects.filter(order_number=order_number).exists()

    def list_by_customer_email(self, email: str) -> List[Order]:
        return list(
            Order.objects.filter(customer_email__iexact=email).order_by(
                "-created_at", "-id"
            )
        )

    def query(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        queryset = Order.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional ORM filters (``status``, ``payment_status``...)."""
        return list(self.query(filters))

    def list_items(self, order_id) -> List[OrderItem]:
        return list(
            OrderItem.objects.select_related("product")
            .filter(order_id=order_id)
            .order_by("created_at", "id")
        )

    def list_history(self, order_id) -> List[OrderStatusHistory]:
        return list(
            OrderStatusHistory.objects.filter(order_id=order_id).order_by(
                "created_at", "id"
            )
        )

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        """Persist the status fields of an existing order.

        Everything else on an order is fixed at creation.
        """
        if entity._state.adding:
            raise ValueError("New orders must be persisted through create().")
        entity.save(update_fields=_STATUS_FIELDS)
        logger.info(
            "order.saved",
            order_id=str(entity.id),
            status=entity.status,
            payment_status=entity.payment_status,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Delete an order together with its lines and history."""
        order = self.get_by_id(id)
        if not order:
            return False
        items, _ = OrderItem.objects.filter(order_id=order.id).delete()
        history, _ = OrderStatusHistory.objects.filter(order_id=order.id).delete()
        order.delete()
        logger.info(
            "order.deleted",
            order_id=str(id),
            items_deleted=items,
            history_deleted=history,
        )
        return True

    # ------------------------------------------------------------------
    # Order-specific writes
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id,
        new_status: str,
        old_status: Optional[str] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
        )
        history.save(force_insert=True)

        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history
