"""Pricing quote request serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.pricing.calculator import ComplexityTier


class CoordinatesMixin(serializers.Serializer):
    """Either ``distance_km`` or all four coordinates must be supplied."""

    distance_km = serializers.DecimalField(
        max_digits=8, decimal_places=3, min_value=0, required=False
    )
    origin_lat = serializers.FloatField(required=False, min_value=-90, max_value=90)
    origin_lng = serializers.FloatField(required=False, min_value=-180, max_value=180)
    destination_lat = serializers.FloatField(required=False, min_value=-90, max_value=90)
    destination_lng = serializers.FloatField(
        required=False, min_value=-180, max_value=180
    )

    COORDINATE_FIELDS = ("origin_lat", "origin_lng", "destination_lat", "destination_lng")

    def validate(self, attrs):
        attrs = super().validate(attrs)
        present = [name for name in self.COORDINATE_FIELDS if attrs.get(name) is not None]
        if "distance_km" not in attrs and len(present) != len(self.COORDINATE_FIELDS):
            raise serializers.ValidationError(
                "Provide distance_km or all of origin_lat, origin_lng, "
                "destination_lat and destination_lng."
            )
        return attrs


class ErrandQuoteSerializer(CoordinatesMixin):
    complexity = serializers.ChoiceField(
        choices=[tier.value for tier in ComplexityTier],
        default=ComplexityTier.LOW.value,
    )
    base_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )


class DeliveryQuoteSerializer(CoordinatesMixin):
    pass


class ServiceAreaSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
