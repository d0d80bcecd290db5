"""Read serializers for orders render without a request cycle."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.dtos import TransitionResultDTO
from modules.orders.models import Order
from modules.orders.serializers import (
    OrderListSerializer,
    OrderSerializer,
    TransitionResultSerializer,
)

pytestmark = pytest.mark.unit


@pytest.fixture()
def order(customer, store):
    return Order.objects.create(
        customer=customer,
        store=store,
        subtotal=Decimal("3200.00"),
        service_fee=Decimal("200.00"),
        delivery_fee=Decimal("1000.00"),
        total=Decimal("4200.00"),
    )


class TestOrderReadSerializers:
    def test_detail_serializer(self, order):
        data = OrderSerializer(order).data
        assert data["order_number"] == order.order_number
        assert data["status_display"]["label"]
        assert data["status_display"]["next_status"] == OrderStatus.ACCEPTED
        assert data["total_display"] == "GYD$4,200"

    def test_list_serializer(self, order):
        (row,) = OrderListSerializer([order], many=True).data
        assert row["status_display"]["is_terminal"] is False

    def test_serializers_can_be_built_repeatedly(self, order):
        first = OrderListSerializer(order).data
        second = OrderListSerializer(order).data
        assert first["status_display"] == second["status_display"]

    def test_transition_result_serializer(self, order):
        result = TransitionResultDTO(
            order=order,
            previous_status=OrderStatus.PENDING,
            status=OrderStatus.ACCEPTED,
            outcome="advanced",
            changed=True,
        )
        data = TransitionResultSerializer(result).data
        assert data["changed"] is True
        assert data["order"]["id"] == str(order.id)
