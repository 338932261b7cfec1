"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from modules.cart.models import CartItem
from modules.cart.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[CartItem]:
        try:
            return CartItem.objects.select_related("product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CartItem]:
        queryset = CartItem.objects.select_related("product")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_session(self, session_id: str) -> List[CartItem]:
        return list(
            CartItem.objects.select_related("product")
            .filter(session_id=session_id)
            .order_by("created_at", "id")
        )

    def get_for_session_and_product(
        self, session_id: str, product_id: str, for_update: bool = False
    ) -> Optional[CartItem]:
        queryset = CartItem.objects.select_related("product")
        if for_update:
            queryset = queryset.select_for_update(of=("self",))
        try:
            return queryset.filter(session_id=session_id, product_id=product_id).first()
        except (ValueError, ValidationError):
            return None

    def insert(self, entity: CartItem) -> Optional[CartItem]:
        # Savepoint: a unique-constraint failure must not poison the
        # caller's transaction.
        try:
            with transaction.atomic():
                entity.save(force_insert=True)
        except IntegrityError:
            logger.info(
                "cart.line_insert_race",
                session_id=entity.session_id,
                product_id=str(entity.product_id),
            )
            return None
        return entity

    def save(self, entity: CartItem) -> CartItem:
        entity.save()
        return entity

    def delete(self, id: str) -> bool:
        try:
            deleted, _ = CartItem.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    def delete_for_session(self, session_id: str) -> int:
        deleted, _ = CartItem.objects.filter(session_id=session_id).delete()
        return deleted

    def delete_lines(self, ids: Sequence) -> int:
        if not ids:
            return 0
        deleted, _ = CartItem.objects.filter(id__in=list(ids)).delete()
        return deleted
