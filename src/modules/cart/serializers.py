"""Cart DRF serializers for API output.

Request bodies are validated by the Pydantic DTOs in ``dtos.py``; these
serializers only render the service results.
"""

from __future__ import annotations

from rest_framework import serializers


class CartLineSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    title = serializers.CharField(read_only=True)
    image_url = serializers.CharField(allow_null=True, read_only=True)
    qty = serializers.IntegerField(read_only=True)
    unit_price = serializers.DecimalField(
        max_digits=None, decimal_places=None, allow_null=True, read_only=True
    )
    unit_price_display = serializers.CharField(read_only=True)
    line_total_display = serializers.CharField(read_only=True)


class CartSummarySerializer(serializers.Serializer):
    """Cart lines with subtotal, flat shipping and grand total."""

    lines = CartLineSerializer(many=True, read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    subtotal = serializers.DecimalField(max_digits=None, decimal_places=None, read_only=True)
    shipping_fee = serializers.DecimalField(max_digits=None, decimal_places=None, read_only=True)
    total = serializers.DecimalField(max_digits=None, decimal_places=None, read_only=True)
    subtotal_display = serializers.CharField(read_only=True)
    shipping_fee_display = serializers.CharField(read_only=True)
    total_display = serializers.CharField(read_only=True)


class PaymentSessionSerializer(serializers.Serializer):
    reference = serializers.CharField(read_only=True)
    redirect_url = serializers.CharField(read_only=True)
    amount = serializers.DecimalField(max_digits=None, decimal_places=None, read_only=True)
    currency = serializers.CharField(read_only=True)
