"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.contacts import resolve_assignee_name, resolve_order_contact
from modules.orders.constants import ORDER_FLOW, PaymentMethod
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.pricing.currency import format_currency

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )
    delivery_address = serializers.CharField(required=False, default="", allow_blank=True)
    city = serializers.CharField(required=False, default="", allow_blank=True)
    latitude = serializers.FloatField(required=False, allow_null=True, default=None)
    longitude = serializers.FloatField(required=False, allow_null=True, default=None)
    delivery_notes = serializers.CharField(required=False, default="", allow_blank=True)
    customer_phone = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=20
    )


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class StatusViewField(serializers.Field):
    """Current/next status with labels and icons for progress widgets."""

    def __init__(self, flow, **kwargs):
        self.flow = flow
        kwargs.setdefault("source", "status")
        kwargs["read_only"] = True
        super().__init__(**kwargs)

    def to_representation(self, value):
        view = self.flow.describe(value)
        return {
            "label": view.label,
            "icon": view.icon,
            "next_status": view.next_status,
            "next_label": view.next_label,
            "is_terminal": view.is_terminal,
        }


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_price",
            "quantity",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "user_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    status_display = StatusViewField(ORDER_FLOW)
    total_display = serializers.SerializerMethodField()
    customer = serializers.SerializerMethodField()
    driver_name = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "customer",
            "driver_id",
            "driver_name",
            "store_id",
            "status",
            "status_display",
            "subtotal",
            "service_fee",
            "delivery_fee",
            "tax",
            "discount",
            "total",
            "total_display",
            "currency",
            "payment_method",
            "payment_status",
            "delivery_address",
            "city",
            "latitude",
            "longitude",
            "delivery_notes",
            "cancellation_reason",
            "assigned_at",
            "confirmed_at",
            "accepted_at",
            "purchasing_at",
            "preparing_at",
            "ready_at",
            "picked_up_at",
            "in_transit_at",
            "delivered_at",
            "cancelled_at",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields

    def get_total_display(self, obj: Order) -> str:
        return format_currency(obj.total)

    def get_customer(self, obj: Order) -> dict:
        contact = resolve_order_contact(obj)
        return {"name": contact.name, "phone": contact.phone, "address": contact.address}

    def get_driver_name(self, obj: Order) -> str | None:
        return resolve_assignee_name(obj.driver)


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    status_display = StatusViewField(ORDER_FLOW)
    total_display = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "driver_id",
            "store_id",
            "status",
            "status_display",
            "total",
            "total_display",
            "created_at",
        ]
        read_only_fields = fields

    def get_total_display(self, obj: Order) -> str:
        return format_currency(obj.total)


class TransitionResultSerializer(serializers.Serializer):
    """Envelope for lifecycle commands: outcome plus the refreshed order."""

    previous_status = serializers.CharField()
    status = serializers.CharField()
    outcome = serializers.CharField()
    changed = serializers.BooleanField()
    message = serializers.CharField(allow_blank=True)
    order = OrderSerializer()
