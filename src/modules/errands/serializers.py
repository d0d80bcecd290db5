"""Errand DRF serializers for API input/output."""

from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers

from modules.accounts.contacts import resolve_assignee_name, resolve_errand_contact
from modules.errands.constants import ERRAND_FLOW
from modules.errands.models import Errand, ErrandCategory, ErrandStatusUpdate, ErrandSubcategory
from modules.orders.constants import PaymentMethod
from modules.orders.serializers import StatusViewField
from modules.pricing.calculator import ComplexityTier
from modules.pricing.currency import format_currency

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateErrandSerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    subcategory_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    pickup_address = serializers.CharField(required=False, default="", allow_blank=True)
    pickup_latitude = serializers.FloatField(required=False, allow_null=True, default=None)
    pickup_longitude = serializers.FloatField(required=False, allow_null=True, default=None)
    dropoff_address = serializers.CharField(required=False, default="", allow_blank=True)
    dropoff_latitude = serializers.FloatField(required=False, allow_null=True, default=None)
    dropoff_longitude = serializers.FloatField(required=False, allow_null=True, default=None)
    city = serializers.CharField(required=False, default="", allow_blank=True)
    customer_phone = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=20
    )
    instructions = serializers.CharField(required=False, default="", allow_blank=True)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    custom_description = serializers.CharField(required=False, default="", allow_blank=True)
    is_asap = serializers.BooleanField(required=False, default=True)
    scheduled_time = serializers.DateTimeField(required=False, allow_null=True, default=None)
    complexity = serializers.ChoiceField(
        choices=[tier.value for tier in ComplexityTier],
        default=ComplexityTier.LOW.value,
    )
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )

    def validate_scheduled_time(self, value):
        if value is not None and value <= timezone.now():
            raise serializers.ValidationError("Scheduled time must be in the future.")
        return value


# ---------------------------------------------------------------------------
# Output Serializers
# ---------------------------------------------------------------------------


class ErrandSubcategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ErrandSubcategory
        fields = [
            "id",
            "category_id",
            "name",
            "description",
            "icon",
            "base_price",
            "estimated_time",
            "requires_authorization",
        ]
        read_only_fields = fields


class ErrandCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ErrandCategory
        fields = ["id", "name", "description", "icon", "display_order"]
        read_only_fields = fields


class ErrandStatusUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = ErrandStatusUpdate
        fields = ["id", "old_status", "new_status", "user_id", "notes", "created_at"]
        read_only_fields = fields


class ErrandSerializer(serializers.ModelSerializer):
    status_display = StatusViewField(ERRAND_FLOW)
    status_updates = ErrandStatusUpdateSerializer(many=True, read_only=True)
    category_name = serializers.CharField(source="category.name", read_only=True)
    service_type = serializers.CharField(read_only=True)
    total_display = serializers.SerializerMethodField()
    customer = serializers.SerializerMethodField()
    runner_name = serializers.SerializerMethodField()

    class Meta:
        model = Errand
        fields = [
            "id",
            "errand_number",
            "customer_id",
            "customer",
            "runner_id",
            "runner_name",
            "category_id",
            "category_name",
            "subcategory_id",
            "service_type",
            "status",
            "status_display",
            "pickup_address",
            "pickup_latitude",
            "pickup_longitude",
            "dropoff_address",
            "dropoff_latitude",
            "dropoff_longitude",
            "city",
            "instructions",
            "notes",
            "custom_description",
            "is_asap",
            "scheduled_time",
            "distance_km",
            "complexity",
            "base_price",
            "distance_fee",
            "complexity_fee",
            "total_price",
            "total_display",
            "currency",
            "payment_method",
            "payment_status",
            "cancellation_reason",
            "assigned_at",
            "accepted_at",
            "at_pickup_at",
            "pickup_complete_at",
            "en_route_at",
            "completed_at",
            "cancelled_at",
            "created_at",
            "updated_at",
            "status_updates",
        ]
        read_only_fields = fields

    def get_total_display(self, obj: Errand) -> str:
        return format_currency(obj.total_price)

    def get_customer(self, obj: Errand) -> dict:
        contact = resolve_errand_contact(obj)
        return {"name": contact.name, "phone": contact.phone, "address": contact.address}

    def get_runner_name(self, obj: Errand) -> str | None:
        return resolve_assignee_name(obj.runner)


class ErrandListSerializer(serializers.ModelSerializer):
    status_display = StatusViewField(ERRAND_FLOW)
    service_type = serializers.CharField(read_only=True)
    total_display = serializers.SerializerMethodField()

    class Meta:
        model = Errand
        fields = [
            "id",
            "errand_number",
            "customer_id",
            "runner_id",
            "service_type",
            "status",
            "status_display",
            "total_price",
            "total_display",
            "is_asap",
            "scheduled_time",
            "created_at",
        ]
        read_only_fields = fields

    def get_total_display(self, obj: Errand) -> str:
        return format_currency(obj.total_price)


class ErrandTransitionResultSerializer(serializers.Serializer):
    previous_status = serializers.CharField()
    status = serializers.CharField()
    outcome = serializers.CharField()
    changed = serializers.BooleanField()
    message = serializers.CharField(allow_blank=True)
    errand = ErrandSerializer()
