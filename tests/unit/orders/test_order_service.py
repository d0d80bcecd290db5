"""Unit tests for OrderService with mocked repositories.

Covers:
- Creation: price snapshot, fee computation, idempotency, store and
  service-area checks.
- Accept / confirm / reject / advance rules and the events they record.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import uuid6

from modules.orders.constants import FINAL_STATUS_MESSAGE, OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.events import OrderAssigned, OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderStatus,
    NotAssignedActor,
    OrderAlreadyAssigned,
    OrderNotFound,
    OutsideServiceArea,
)
from modules.orders.models import Order
from modules.orders.services import OrderService
from modules.pricing.calculator import PricingConfig
from modules.stores.exceptions import ProductUnavailable, StoreClosed

pytestmark = pytest.mark.unit


def _order(status=OrderStatus.PENDING, driver_id=None) -> Order:
    return Order(
        id=uuid6.uuid7(),
        order_number="ORD-20250101-ABC123",
        customer_id=1,
        status=status,
        driver_id=driver_id,
        total=Decimal("4500.00"),
    )


@pytest.fixture()
def catalogue():
    store = SimpleNamespace(
        id=uuid4(), name="Demerara Kitchen", is_open=True, location=(6.8090, -58.1600)
    )
    curry = SimpleNamespace(
        id=uuid4(), name="Chicken Curry", price=Decimal("1500"), is_available=True
    )
    cola = SimpleNamespace(id=uuid4(), name="Coca Cola", price=Decimal("300"), is_available=True)
    return store, curry, cola


@pytest.fixture()
def service_and_repos(catalogue):
    store, curry, cola = catalogue
    order_repo = MagicMock()
    order_repo.get_by_id.return_value = None
    order_repo.get_by_idempotency_key.return_value = None
    store_repo = MagicMock()
    store_repo.get_by_id.return_value = store
    store_repo.get_products.return_value = [curry, cola]
    service = OrderService(
        order_repo, store_repo, event_bus=MagicMock(), pricing_config=PricingConfig()
    )
    return service, order_repo, store_repo


def _dto(catalogue, **overrides) -> CreateOrderDTO:
    store, curry, cola = catalogue
    data = {
        "customer_id": 1,
        "store_id": store.id,
        "items": [
            CreateOrderItemDTO(product_id=curry.id, quantity=2),
            CreateOrderItemDTO(product_id=cola.id, quantity=1),
        ],
    }
    data.update(overrides)
    return CreateOrderDTO(**data)


class TestCreateOrder:
    def test_snapshots_prices_and_computes_totals(self, service_and_repos, catalogue):
        service, order_repo, _ = service_and_repos
        order_repo.create.return_value = _order()

        service.create_order(_dto(catalogue))

        data = order_repo.create.call_args.args[0]
        assert [line["product_price"] for line in data["items"]] == [
            Decimal("1500.00"),
            Decimal("300.00"),
        ]
        assert data["items"][0]["product_name"] == "Chicken Curry"
        assert data["service_fee"] == Decimal("200")
        assert data["subtotal"] == Decimal("3500.00")
        assert data["delivery_fee"] == Decimal("1000")
        assert data["tax"] == Decimal("0.00")
        assert data["total"] == Decimal("4500.00")
        assert data["currency"] == "GYD"

    def test_total_adds_up_without_discount(self, service_and_repos, catalogue):
        service, order_repo, _ = service_and_repos
        order_repo.create.return_value = _order()

        service.create_order(_dto(catalogue))

        data = order_repo.create.call_args.args[0]
        assert data["discount"] == Decimal("0.00")
        assert data["total"] == (
            data["subtotal"] + data["delivery_fee"] + data["tax"] - data["discount"]
        )

    def test_discount_is_not_accepted_from_the_client(self, catalogue):
        dto = _dto(catalogue, discount=Decimal("500"))
        assert not hasattr(dto, "discount")

    def test_distance_based_delivery_fee(self, service_and_repos, catalogue):
        service, order_repo, _ = service_and_repos
        order_repo.create.return_value = _order()

        service.create_order(_dto(catalogue, latitude=6.8045, longitude=-58.1553))

        fee = order_repo.create.call_args.args[0]["delivery_fee"]
        assert fee > Decimal("1000")
        assert fee == fee.to_integral_value()

    def test_records_created_event_and_history(self, service_and_repos, catalogue):
        service, order_repo, _ = service_and_repos
        order = _order()
        order_repo.create.return_value = order

        service.create_order(_dto(catalogue))

        order_repo.save.assert_called_once()
        assert isinstance(order.domain_events[0], OrderCreated)
        history = order_repo.add_history.call_args.kwargs
        assert history["status"] == OrderStatus.PENDING
        assert history["user_id"] == 1

    def test_idempotency_key_returns_existing(self, service_and_repos, catalogue):
        service, order_repo, store_repo = service_and_repos
        existing = _order()
        order_repo.get_by_idempotency_key.return_value = existing

        result = service.create_order(_dto(catalogue, idempotency_key="key-1"))

        assert result is existing
        order_repo.create.assert_not_called()
        store_repo.get_by_id.assert_not_called()

    def test_closed_store(self, service_and_repos, catalogue):
        service, order_repo, store_repo = service_and_repos
        store_repo.get_by_id.return_value = SimpleNamespace(
            id=catalogue[0].id, name="Closed", is_open=False, location=(0, 0)
        )
        with pytest.raises(StoreClosed):
            service.create_order(_dto(catalogue))
        order_repo.create.assert_not_called()

    def test_unavailable_product(self, service_and_repos, catalogue):
        service, order_repo, store_repo = service_and_repos
        _, curry, cola = catalogue
        store_repo.get_products.return_value = [
            curry,
            SimpleNamespace(id=cola.id, name="Coca Cola", price=Decimal("300"), is_available=False),
        ]
        with pytest.raises(ProductUnavailable):
            service.create_order(_dto(catalogue))
        order_repo.create.assert_not_called()

    def test_outside_service_area(self, service_and_repos, catalogue):
        service, order_repo, _ = service_and_repos
        with pytest.raises(OutsideServiceArea) as exc_info:
            service.create_order(_dto(catalogue, latitude=6.40, longitude=-58.60))
        assert "Region 3" in str(exc_info.value)
        order_repo.create.assert_not_called()


class TestAccept:
    def test_assigns_driver_without_changing_status(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order = _order()
        order_repo.get_for_update.return_value = order

        result = service.accept(order.id, 42)

        assert result is order
        assert order.driver_id == 42
        assert order.status == OrderStatus.PENDING
        assert order.assigned_at is not None
        assert isinstance(order.domain_events[0], OrderAssigned)
        assert order_repo.save.call_args.kwargs["update_fields"] == ["driver", "assigned_at"]

    def test_already_assigned(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order_repo.get_for_update.return_value = _order(driver_id=7)
        with pytest.raises(OrderAlreadyAssigned):
            service.accept(uuid4(), 42)
        order_repo.save.assert_not_called()

    def test_not_pending(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order_repo.get_for_update.return_value = _order(status=OrderStatus.CONFIRMED)
        with pytest.raises(OrderAlreadyAssigned):
            service.accept(uuid4(), 42)

    def test_missing_order(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order_repo.get_for_update.return_value = None
        with pytest.raises(OrderNotFound):
            service.accept(uuid4(), 42)


class TestConfirm:
    def test_pending_to_confirmed(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order = _order()
        order_repo.get_for_update.return_value = order

        result = service.confirm(order.id, 1)

        assert result.status == OrderStatus.CONFIRMED
        assert result.outcome == "confirmed"
        assert order.confirmed_at is not None
        assert "confirmed_at" in order_repo.save.call_args.kwargs["update_fields"]

    def test_only_from_pending(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order_repo.get_for_update.return_value = _order(status=OrderStatus.ACCEPTED)
        with pytest.raises(InvalidOrderStatus):
            service.confirm(uuid4(), 1)


class TestReject:
    def test_reject_records_reason_and_cancelled_event(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order = _order(status=OrderStatus.ACCEPTED, driver_id=42)
        order_repo.get_for_update.return_value = order

        result = service.reject(order.id, 1, reason="Store out of stock")

        assert result.status == OrderStatus.CANCELLED
        assert result.outcome == "rejected"
        assert order.cancellation_reason == "Store out of stock"
        assert order.cancelled_at is not None
        event = order.domain_events[0]
        assert isinstance(event, OrderCancelled)
        assert event.reason == "Store out of stock"
        assert event.old_status == "accepted"
        fields = order_repo.save.call_args.kwargs["update_fields"]
        assert {"status", "cancellation_reason", "cancelled_at"} <= set(fields)

    def test_reject_after_pickup(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order_repo.get_for_update.return_value = _order(status=OrderStatus.PICKED_UP)
        with pytest.raises(InvalidOrderStatus):
            service.reject(uuid4(), 1)
        order_repo.save.assert_not_called()


class TestAdvance:
    def test_advance_stamps_and_records_history(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order = _order(status=OrderStatus.PREPARING, driver_id=42)
        order_repo.get_for_update.return_value = order

        result = service.advance_status(order.id, 42)

        assert result.changed is True
        assert result.previous_status == "preparing"
        assert result.status == "ready_for_pickup"
        assert order.ready_at is not None
        assert isinstance(order.domain_events[0], OrderStatusChanged)
        history = order_repo.add_history.call_args.kwargs
        assert history["old_status"] == "preparing"
        assert history["status"] == "ready_for_pickup"
        assert history["user_id"] == 42

    def test_unassigned_order_can_be_advanced(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order_repo.get_for_update.return_value = _order()

        result = service.advance_status(uuid4(), 42)

        assert result.status == "accepted"

    def test_other_driver_is_refused(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order_repo.get_for_update.return_value = _order(status=OrderStatus.ACCEPTED, driver_id=7)
        with pytest.raises(NotAssignedActor):
            service.advance_status(uuid4(), 42)
        order_repo.save.assert_not_called()

    def test_final_status_is_informational(self, service_and_repos):
        service, order_repo, _ = service_and_repos
        order = _order(status=OrderStatus.DELIVERED, driver_id=42)
        order_repo.get_for_update.return_value = order

        result = service.advance_status(order.id, 42)

        assert result.changed is False
        assert result.outcome == "final"
        assert result.message == FINAL_STATUS_MESSAGE
        assert result.status == "delivered"
        order_repo.save.assert_not_called()
        order_repo.add_history.assert_not_called()
