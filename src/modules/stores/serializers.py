"""Store read serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.pricing.currency import format_currency
from modules.stores.models import Product, Store


class ProductSerializer(serializers.ModelSerializer):
    price_display = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "store_id",
            "name",
            "description",
            "category",
            "price",
            "price_display",
            "is_available",
        ]
        read_only_fields = fields

    def get_price_display(self, obj: Product) -> str:
        return format_currency(obj.price)


class StoreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Store
        fields = [
            "id",
            "name",
            "category",
            "description",
            "address",
            "city",
            "phone",
            "latitude",
            "longitude",
            "is_open",
            "created_at",
        ]
        read_only_fields = fields
