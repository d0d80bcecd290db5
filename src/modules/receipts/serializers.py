"""Receipt and invoice serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.pricing.currency import format_currency
from modules.receipts.models import Invoice, InvoiceItem

# ---------------------------------------------------------------------------
# Receipts (read-only documents built from dataclasses)
# ---------------------------------------------------------------------------


class ReceiptLineSerializer(serializers.Serializer):
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    unit_price_display = serializers.CharField()
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_display = serializers.CharField()


class ReceiptSectionSerializer(serializers.Serializer):
    label = serializers.CharField()
    lines = ReceiptLineSerializer(many=True)


class ReceiptAmountSerializer(serializers.Serializer):
    label = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    display = serializers.CharField()


class ReceiptSerializer(serializers.Serializer):
    kind = serializers.CharField()
    number = serializers.CharField()
    issued_at = serializers.DateTimeField()
    status = serializers.CharField()
    status_label = serializers.CharField()
    customer_name = serializers.CharField()
    customer_phone = serializers.CharField(allow_null=True)
    address = serializers.CharField(allow_null=True)
    assignee_name = serializers.CharField(allow_null=True)
    payment_method = serializers.CharField()
    payment_status = serializers.CharField()
    sections = ReceiptSectionSerializer(many=True)
    amounts = ReceiptAmountSerializer(many=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_display = serializers.CharField()
    details = serializers.DictField()
    footer = serializers.ListField(child=serializers.CharField())


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------


class CreateOrderInvoiceSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class CreateErrandInvoiceSerializer(serializers.Serializer):
    errand_id = serializers.UUIDField()


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = ["id", "service_name", "description", "quantity", "price", "total"]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True, read_only=True)
    total_display = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "customer_id",
            "driver_id",
            "order_id",
            "errand_id",
            "invoice_date",
            "subtotal",
            "service_fee",
            "tax",
            "discount",
            "total",
            "total_display",
            "currency",
            "payment_status",
            "notes",
            "items",
            "created_at",
        ]
        read_only_fields = fields

    def get_total_display(self, obj: Invoice) -> str:
        return format_currency(obj.total)


class InvoiceListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "order_id",
            "errand_id",
            "invoice_date",
            "total",
            "payment_status",
        ]
        read_only_fields = fields
