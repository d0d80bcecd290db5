"""Payment request/response serializers."""

from __future__ import annotations

from rest_framework import serializers


class MobileMoneySerializer(serializers.Serializer):
    phone_number = serializers.CharField(max_length=20)


class RefundSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class PaymentIntentSerializer(serializers.Serializer):
    id = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    status = serializers.CharField()
    client_secret = serializers.CharField(allow_null=True)


class PaymentResultSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    payment_status = serializers.CharField()
    transaction_id = serializers.CharField(allow_null=True)
    error = serializers.CharField(allow_null=True)


class PaymentStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    method = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class CardConfirmationSerializer(serializers.Serializer):
    intent_id = serializers.CharField(max_length=255)
    succeeded = serializers.BooleanField()
