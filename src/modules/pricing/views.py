"""Pricing API views.

Read-only calculators: they never touch the database, so they are plain
``APIView`` endpoints over the pure functions in ``calculator`` and
``distance``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional

import structlog
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.pricing.calculator import (
    calculate_delivery_fee,
    distance_bands_table,
    get_pricing_config,
    quote_errand,
)
from modules.pricing.currency import format_currency
from modules.pricing.distance import check_service_area, haversine_km
from modules.pricing.serializers import (
    DeliveryQuoteSerializer,
    ErrandQuoteSerializer,
    ServiceAreaSerializer,
)

logger = structlog.get_logger(__name__)


def resolve_distance(data: Mapping[str, Any]) -> Decimal:
    """Explicit distance wins; otherwise haversine between the two points."""
    if data.get("distance_km") is not None:
        return Decimal(data["distance_km"])
    km = haversine_km(
        data["origin_lat"],
        data["origin_lng"],
        data["destination_lat"],
        data["destination_lng"],
    )
    return Decimal(repr(round(km, 3)))


def _zone_payload(lat: Optional[float], lng: Optional[float]) -> Optional[dict]:
    if lat is None or lng is None:
        return None
    check = check_service_area(lat, lng)
    return {"allowed": check.allowed, "zone": check.zone, "message": check.message}


class ErrandQuoteView(APIView):
    """POST /api/v1/pricing/errand-quote/"""

    def post(self, request: Request) -> Response:
        serializer = ErrandQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        config = get_pricing_config()
        distance = resolve_distance(data)
        quote = quote_errand(
            distance,
            data["complexity"],
            base_amount=data.get("base_amount"),
            config=config,
        )
        logger.info(
            "pricing.errand_quoted",
            distance_km=str(distance),
            complexity=data["complexity"],
            flat_price_applied=quote.flat_price_applied,
        )
        return Response(
            {
                "distance_km": str(distance),
                "complexity": data["complexity"],
                "breakdown": quote.breakdown.model_dump(mode="json"),
                "breakdown_display": quote.breakdown.formatted(),
                "flat_price": str(quote.flat_price),
                "flat_price_applied": quote.flat_price_applied,
                "base_price": str(quote.base_price),
                "distance_fee": str(quote.distance_fee),
                "complexity_fee": str(quote.complexity_fee),
                "total_price": str(quote.total_price),
                "total_display": format_currency(quote.total_price),
                "distance_bands": distance_bands_table(config),
                "destination_zone": _zone_payload(
                    data.get("destination_lat"), data.get("destination_lng")
                ),
            }
        )


class DeliveryQuoteView(APIView):
    """POST /api/v1/pricing/delivery-quote/"""

    def post(self, request: Request) -> Response:
        serializer = DeliveryQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        config = get_pricing_config()
        distance = resolve_distance(data)
        fee = calculate_delivery_fee(distance, config)
        return Response(
            {
                "distance_km": str(distance),
                "delivery_fee": str(fee),
                "delivery_fee_display": format_currency(fee),
                "service_fee": str(config.service_fee),
                "destination_zone": _zone_payload(
                    data.get("destination_lat"), data.get("destination_lng")
                ),
            }
        )


class ServiceAreaView(APIView):
    """GET /api/v1/pricing/service-area/?lat=..&lng=.."""

    def get(self, request: Request) -> Response:
        serializer = ServiceAreaSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return Response(
            _zone_payload(serializer.validated_data["lat"], serializer.validated_data["lng"])
        )
