"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.  Order detail responses are rendered
from ``OrderOutputDTO``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the checkout payload."""

    session_id = serializers.CharField(max_length=255)
    customer_name = serializers.CharField(max_length=255)
    customer_email = serializers.EmailField()
    shipping_address = serializers.CharField()
    delivery_notes = serializers.CharField(required=False, default="", allow_blank=True)


class PaymentSerializer(serializers.Serializer):
    successful = serializers.BooleanField()
    transaction_reference = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=255
    )


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no lines or history)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_name",
            "customer_email",
            "status",
            "payment_status",
            "total_amount",
            "created_at",
        ]
        read_only_fields = fields
