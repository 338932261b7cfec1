"""Product DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ProductWriteSerializer(serializers.Serializer):
    """Validates create (all required fields) and update (partial) payloads."""

    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    stock_quantity = serializers.IntegerField(required=False, min_value=0)
    category = serializers.CharField(max_length=100)
    image_url = serializers.URLField(required=False, allow_blank=True, max_length=500)
    is_active = serializers.BooleanField(required=False)
    version = serializers.IntegerField(required=False, min_value=1)


class StockUpdateSerializer(serializers.Serializer):
    """``{"stock_quantity": N, "version": V?}`` for the stock endpoint."""

    stock_quantity = serializers.IntegerField(min_value=0)
    version = serializers.IntegerField(required=False, min_value=1)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "stock_quantity",
            "in_stock",
            "category",
            "image_url",
            "is_active",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_in_stock(self, obj: Product) -> bool:
        return obj.stock_quantity > 0
