"""Cart API views.

The cart is addressed by an opaque session id in the URL; there is no
authentication.  Every response body is the cart snapshot.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.serializers import AddCartItemSerializer, UpdateCartItemSerializer
from modules.cart.services import CartService
from modules.products.repositories.django_repository import ProductDjangoRepository


class CartViewSet(ViewSet):
    """Session-scoped cart operations backed by ``CartService``."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def retrieve(self, request: Request, session_id: str) -> Response:
        """GET /api/v1/cart/{session_id}/"""
        snapshot = self._service.get_cart(session_id)
        return Response(snapshot.model_dump(mode="json"))

    def clear(self, request: Request, session_id: str) -> Response:
        """DELETE /api/v1/cart/{session_id}/"""
        self._service.clear(session_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def add_item(self, request: Request, session_id: str) -> Response:
        """POST /api/v1/cart/{session_id}/items/"""
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        snapshot = self._service.add_item(
            session_id, data["product_id"], data["quantity"]
        )
        return Response(snapshot.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    def update_item(self, request: Request, session_id: str, item_id) -> Response:
        """PUT/PATCH /api/v1/cart/{session_id}/items/{item_id}/"""
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        snapshot = self._service.update_item(
            session_id, item_id, serializer.validated_data["quantity"]
        )
        return Response(snapshot.model_dump(mode="json"))

    def remove_item(self, request: Request, session_id: str, item_id) -> Response:
        """DELETE /api/v1/cart/{session_id}/items/{item_id}/"""
        snapshot = self._service.remove_item(session_id, item_id)
        return Response(snapshot.model_dump(mode="json"))
