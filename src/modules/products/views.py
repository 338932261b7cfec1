"""Product API views.

Exposes ``ProductService`` via HTTP using DRF ViewSets.  Domain errors
raised by the service propagate to the project exception handler, which
renders them with the matching status code.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import (
    ProductSerializer,
    ProductWriteSerializer,
    StockUpdateSerializer,
)
from modules.products.services import ProductService

_FALSY = {"false", "0", "no"}


class ProductViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for the product catalog.

    Uses ``ProductService`` with ``ProductDjangoRepository`` (DIP).
    Does **not** extend ``ModelViewSet``: writes go through the service so
    every change carries the version check.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "description", "category"]
    ordering_fields = ["name", "price", "stock_quantity", "created_at"]
    ordering = ["name", "id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.none()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        """Active products by default; ``?is_active=false`` lists the retired ones."""
        filters = {}
        active = self.request.query_params.get("is_active") if self.request else None
        if active is not None and active.lower() in _FALSY:
            filters["is_active"] = False
        return self._service.catalog(filters)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        product = self._service.get_product(pk)
        return Response(ProductSerializer(product).data)

    @action(detail=False, methods=["get"])
    def categories(self, request: Request) -> Response:
        """GET /api/v1/products/categories/"""
        return Response({"categories": self._service.list_categories()})

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        data.pop("version", None)

        product = self._service.create_product(CreateProductDTO(**data))
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/products/{pk}/"""
        return self._update(request, pk, partial=False)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        return self._update(request, pk, partial=True)

    @action(detail=True, methods=["patch"], url_path="stock")
    def update_stock(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/stock/

        Overwrites the stock level.  Send the ``version`` you last read to
        have the write rejected if someone else changed the product first.
        """
        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = self._service.update_product(
            pk, UpdateProductDTO(**serializer.validated_data)
        )
        return Response(ProductSerializer(product).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/ (deactivates)."""
        self._service.delete_product(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _update(self, request: Request, pk: str | None, partial: bool) -> Response:
        serializer = ProductWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        product = self._service.update_product(
            pk, UpdateProductDTO(**serializer.validated_data)
        )
        return Response(ProductSerializer(product).data)
