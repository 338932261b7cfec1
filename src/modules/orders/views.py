"""Order API views.

Exposes ``OrderService`` via HTTP using DRF ViewSets.  Domain errors
propagate to the project exception handler, which maps them to status
codes by kind.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.orders.dtos import CreateOrderDTO, PaymentDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    PaymentSerializer,
    StatusUpdateSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all writes go through the
    service layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderListSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer_name", "customer_email"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def get_queryset(self):
        return self._service.orders()

    def _detail(self, order: Order, status_code: int = status.HTTP_200_OK) -> Response:
        return Response(
            self._service.describe(order).model_dump(mode="json"),
            status=status_code,
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/ (checkout of the session's cart)."""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self._service.create_order(CreateOrderDTO(**serializer.validated_data))
        return self._detail(order, status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, payment status, customer e-mail, date and total
        ranges) is handled by ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        return self._detail(self._service.get_order(pk))

    @action(
        detail=False,
        methods=["get"],
        url_path=r"number/(?P<order_number>[^/]+)",
        url_name="by-number",
    )
    def by_number(self, request: Request, order_number: str) -> Response:
        """GET /api/v1/orders/number/{order_number}/"""
        return self._detail(self._service.get_order_by_number(order_number))

    # ------------------------------------------------------------------
    # Status / Payment / Cancel
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Moves the order status.  ``CANCELLED`` is accepted and runs the
        same rules as ``POST /orders/{id}/cancel/``.
        """
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = self._service.update_order_status(pk, data["status"], data["notes"])
        return self._detail(order)

    @action(detail=True, methods=["post"])
    def payment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/payment/"""
        serializer = PaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self._service.process_payment(
            pk, PaymentDTO(**serializer.validated_data)
        )
        return self._detail(order)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self._service.cancel_order(pk, serializer.validated_data["notes"])
        return self._detail(order)

    # ------------------------------------------------------------------
    # Destroy
    # ------------------------------------------------------------------

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (cancelled orders only)."""
        self._service.delete_order(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
