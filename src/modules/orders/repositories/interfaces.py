"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with lines, row-locked reads, status history and the
look-ups by order number and customer e-mail.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes ``OrderItem`` lines and ``OrderStatusHistory``
    records.  Creation and deletion of the whole aggregate are atomic.
    """

    @abstractmethod
    def create(self, order: Order, items: Sequence[OrderItem]) -> Order:
        """Insert the order and its lines as one unit."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row lock until the transaction ends."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order by its human-readable number."""

    @abstractmethod
    def exists_order_number(self, order_number: str) -> bool:
        """Whether an order already uses ``order_number``."""

    @abstractmethod
    def list_by_customer_email(self, email: str) -> List[Order]:
        """Orders placed with ``email`` (case-insensitive), newest first."""

    @abstractmethod
    def query(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Order]":
        """Lazy, filterable order query for paginated listings."""

    @abstractmethod
    def list_items(self, order_id) -> List[OrderItem]:
        """Lines of an order with their products loaded."""

    @abstractmethod
    def list_history(self, order_id) -> List[OrderStatusHistory]:
        """Status history of an order, oldest first."""

    @abstractmethod
    def add_history(
        self,
        order_id,
        new_status: str,
        old_status: Optional[str] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
