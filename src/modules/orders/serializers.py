"""Order DRF serializers for API output.

The views hand these the Pydantic DTOs built by the service layer; the
serializers only shape them for JSON and for the OpenAPI schema.
"""

from __future__ import annotations

from rest_framework import serializers


class TimelineStepSerializer(serializers.Serializer):
    index = serializers.IntegerField(read_only=True)
    label = serializers.CharField(read_only=True)
    reached = serializers.BooleanField(read_only=True)


class RentalPeriodSerializer(serializers.Serializer):
    start = serializers.CharField(read_only=True)
    end = serializers.CharField(read_only=True)


class OrderViewSerializer(serializers.Serializer):
    """Read serializer for one order render model."""

    id = serializers.CharField(read_only=True)
    label = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    bucket = serializers.CharField(read_only=True)
    stage = serializers.IntegerField(read_only=True)
    stage_label = serializers.CharField(read_only=True)
    timeline = TimelineStepSerializer(many=True, read_only=True)
    amount = serializers.DecimalField(
        max_digits=None, decimal_places=None, allow_null=True, read_only=True
    )
    total_display = serializers.CharField(read_only=True)
    awaiting_price = serializers.BooleanField(read_only=True)
    is_paid = serializers.BooleanField(read_only=True)
    type = serializers.CharField(allow_null=True, read_only=True)
    rental = RentalPeriodSerializer(allow_null=True, read_only=True)
    created_at = serializers.DateTimeField(allow_null=True, read_only=True)
    reference = serializers.CharField(allow_null=True, read_only=True)
    quote_expires_at = serializers.DateTimeField(allow_null=True, read_only=True)
    quote_expired = serializers.BooleanField(read_only=True)


class GroupedOrdersSerializer(serializers.Serializer):
    active = OrderViewSerializer(many=True, read_only=True)
    past = OrderViewSerializer(many=True, read_only=True)
    cancelled = OrderViewSerializer(many=True, read_only=True)


class OrdersOverviewSerializer(serializers.Serializer):
    """Grouped orders + active badge + ``stale`` when served from cache."""

    groups = GroupedOrdersSerializer(read_only=True)
    badge_count = serializers.IntegerField(read_only=True)
    stale = serializers.BooleanField(read_only=True)
