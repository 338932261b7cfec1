"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.cart.models import CartItem


class ICartRepository(IRepository["CartItem"]):
    """Repository contract for cart lines, keyed by line id or (session, product)."""

    @abstractmethod
    def list_for_session(self, session_id: str) -> List[CartItem]:
        """Lines of one session with their products loaded, oldest first."""

    @abstractmethod
    def get_for_session_and_product(
        self, session_id: str, product_id: str, for_update: bool = False
    ) -> Optional[CartItem]:
        """The session's line for ``product_id``, if any.

        With ``for_update`` the row stays locked until the caller's
        transaction ends.
        """

    @abstractmethod
    def insert(self, entity: CartItem) -> Optional[CartItem]:
        """Insert a new line.

        Returns ``None`` when another request created the same
        (session, product) line first.
        """

    @abstractmethod
    def delete_for_session(self, session_id: str) -> int:
        """Remove every line of a session; returns the number removed."""

    @abstractmethod
    def delete_lines(self, ids: Sequence) -> int:
        """Remove exactly the given lines; returns the number removed."""
