"""Integration tests for the Order API endpoints.

Covers:
- Creation with price snapshot, fees, idempotency and service-area checks
- Visibility rules per role
- Accept / confirm / reject / advance through the full lifecycle
- Receipts
"""

from decimal import Decimal

import pytest

from modules.core.models import OutboxEvent
from modules.orders.models import Order

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def _payload(store, product, quantity=2, **extra):
    data = {
        "store_id": str(store.id),
        "items": [{"product_id": str(product.id), "quantity": quantity}],
    }
    data.update(extra)
    return data


@pytest.fixture()
def placed_order(client_for, customer, store, product):
    response = client_for(customer).post(ORDERS_URL, _payload(store, product), format="json")
    assert response.status_code == 201
    return response.json()


def _url(order_id, action=""):
    return f"{ORDERS_URL}{order_id}/{action + '/' if action else ''}"


class TestCreateOrder:
    def test_client_discount_is_ignored(self, client_for, customer, store, product):
        response = client_for(customer).post(
            ORDERS_URL, _payload(store, product, discount="4000"), format="json"
        )
        assert response.status_code == 201
        assert response.json()["discount"] == "0.00"
        assert response.json()["total"] == "4200.00"

    def test_totals_and_snapshot(self, placed_order, product):
        assert placed_order["status"] == "pending"
        assert placed_order["order_number"].startswith("ORD-")
        assert placed_order["subtotal"] == "3200.00"
        assert placed_order["service_fee"] == "200.00"
        assert placed_order["delivery_fee"] == "1000.00"
        assert placed_order["tax"] == "0.00"
        assert placed_order["total"] == "4200.00"
        assert placed_order["total_display"] == "GYD$4,200"
        assert placed_order["currency"] == "GYD"

        (item,) = placed_order["items"]
        assert item["product_name"] == "Chicken Curry"
        assert item["product_price"] == "1500.00"
        assert item["subtotal"] == "3000.00"

        assert len(placed_order["status_history"]) == 1
        assert placed_order["status_display"]["next_status"] == "accepted"

    def test_price_change_does_not_touch_placed_orders(self, placed_order, product):
        product.price = Decimal("9999.00")
        product.save()

        order = Order.objects.get(pk=placed_order["id"])
        assert order.items.get().product_price == Decimal("1500.00")
        assert order.total == Decimal("4200.00")

    def test_delivery_fee_from_distance(self, client_for, customer, store, product):
        response = client_for(customer).post(
            ORDERS_URL,
            _payload(store, product, latitude=6.8045, longitude=-58.1553),
            format="json",
        )
        assert response.status_code == 201
        body = response.json()
        assert Decimal(body["delivery_fee"]) > Decimal("1000")
        assert Decimal(body["total"]) == (
            Decimal(body["subtotal"]) + Decimal(body["delivery_fee"]) + Decimal(body["tax"])
            - Decimal(body["discount"])
        )

    def test_outside_service_area(self, client_for, customer, store, product):
        response = client_for(customer).post(
            ORDERS_URL,
            _payload(store, product, latitude=6.40, longitude=-58.60),
            format="json",
        )
        assert response.status_code == 400
        assert "Region 3" in response.json()["detail"]
        assert Order.objects.count() == 0

    def test_idempotency_key(self, client_for, customer, store, product):
        client = client_for(customer)
        first = client.post(
            ORDERS_URL, _payload(store, product), format="json", HTTP_IDEMPOTENCY_KEY="abc-1"
        )
        second = client.post(
            ORDERS_URL, _payload(store, product), format="json", HTTP_IDEMPOTENCY_KEY="abc-1"
        )
        assert first.json()["id"] == second.json()["id"]
        assert Order.objects.count() == 1

    def test_closed_store(self, client_for, customer, store, product):
        store.is_open = False
        store.save()
        response = client_for(customer).post(ORDERS_URL, _payload(store, product), format="json")
        assert response.status_code == 400

    def test_unavailable_product(self, client_for, customer, store, product):
        product.is_available = False
        product.save()
        response = client_for(customer).post(ORDERS_URL, _payload(store, product), format="json")
        assert response.status_code == 400

    def test_unknown_store(self, client_for, customer, store, product):
        payload = _payload(store, product)
        payload["store_id"] = "00000000-0000-0000-0000-000000000000"
        response = client_for(customer).post(ORDERS_URL, payload, format="json")
        assert response.status_code == 404

    def test_duplicate_products_rejected(self, client_for, customer, store, product):
        payload = _payload(store, product)
        payload["items"] *= 2
        response = client_for(customer).post(ORDERS_URL, payload, format="json")
        assert response.status_code == 400

    def test_empty_items(self, client_for, customer, store):
        response = client_for(customer).post(
            ORDERS_URL, {"store_id": str(store.id), "items": []}, format="json"
        )
        assert response.status_code == 400

    def test_requires_authentication(self, api_client, store, product):
        response = api_client.post(ORDERS_URL, _payload(store, product), format="json")
        assert response.status_code == 401


class TestVisibility:
    def test_other_customer_cannot_see(self, placed_order, client_for, other_customer):
        response = client_for(other_customer).get(_url(placed_order["id"]))
        assert response.status_code == 404

    def test_driver_sees_unassigned_orders(self, placed_order, client_for, driver):
        listing = client_for(driver).get(ORDERS_URL).json()
        assert [row["id"] for row in listing["results"]] == [placed_order["id"]]

    def test_driver_loses_sight_once_taken(self, placed_order, client_for, driver, other_driver):
        client_for(driver).post(_url(placed_order["id"], "accept"))
        assert client_for(other_driver).get(_url(placed_order["id"])).status_code == 404
        assert client_for(driver).get(_url(placed_order["id"])).status_code == 200

    def test_admin_sees_everything(self, placed_order, client_for, admin_user):
        listing = client_for(admin_user).get(ORDERS_URL).json()
        assert listing["count"] == 1

    def test_invalid_id(self, client_for, admin_user):
        assert client_for(admin_user).get(_url("not-a-uuid")).status_code == 404

    def test_status_filter(self, placed_order, client_for, admin_user):
        client = client_for(admin_user)
        assert client.get(ORDERS_URL, {"status": "pending"}).json()["count"] == 1
        assert client.get(ORDERS_URL, {"status": "delivered"}).json()["count"] == 0


class TestLifecycle:
    def test_full_delivery_flow(self, placed_order, client_for, driver):
        client = client_for(driver)
        order_id = placed_order["id"]

        accepted = client.post(_url(order_id, "accept"))
        assert accepted.status_code == 200
        assert accepted.json()["driver_id"] == driver.pk
        assert accepted.json()["status"] == "pending"
        assert accepted.json()["driver_name"] == "Devon Persaud"

        seen = []
        for _ in range(7):
            response = client.post(_url(order_id, "advance"))
            assert response.status_code == 200
            assert response.json()["changed"] is True
            seen.append(response.json()["status"])
        assert seen == [
            "accepted",
            "purchasing",
            "preparing",
            "ready_for_pickup",
            "picked_up",
            "in_transit",
            "delivered",
        ]

        final = client.post(_url(order_id, "advance"))
        assert final.status_code == 200
        assert final.json()["changed"] is False
        assert final.json()["message"] == "Order is already at final status"

        order = Order.objects.get(pk=order_id)
        assert order.delivered_at is not None
        assert order.status_history.count() == 8
        assert OutboxEvent.objects.filter(aggregate_id=order_id).count() == 9

    def test_second_driver_cannot_accept(self, placed_order, client_for, driver, other_driver):
        client_for(driver).post(_url(placed_order["id"], "accept"))
        response = client_for(other_driver).post(_url(placed_order["id"], "accept"))
        assert response.status_code == 409

    def test_only_assigned_driver_advances(self, placed_order, client_for, driver, other_driver):
        client_for(driver).post(_url(placed_order["id"], "accept"))
        response = client_for(other_driver).post(_url(placed_order["id"], "advance"))
        assert response.status_code == 403

    def test_customer_cannot_accept(self, placed_order, client_for, customer):
        response = client_for(customer).post(_url(placed_order["id"], "accept"))
        assert response.status_code == 403

    def test_unknown_order(self, client_for, driver):
        response = client_for(driver).post(_url("0192f0c4-aaaa-7bbb-8ccc-123456789abc", "accept"))
        assert response.status_code == 404

    def test_confirm_then_final(self, placed_order, client_for, admin_user):
        client = client_for(admin_user)
        confirmed = client.post(_url(placed_order["id"], "confirm"))
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"
        assert confirmed.json()["order"]["confirmed_at"] is not None

        advanced = client.post(_url(placed_order["id"], "advance"))
        assert advanced.json()["changed"] is False

        again = client.post(_url(placed_order["id"], "confirm"))
        assert again.status_code == 400

    def test_confirm_requires_admin(self, placed_order, client_for, driver):
        assert client_for(driver).post(_url(placed_order["id"], "confirm")).status_code == 403

    def test_reject(self, placed_order, client_for, admin_user):
        response = client_for(admin_user).post(
            _url(placed_order["id"], "reject"), {"reason": "Store closed early"}, format="json"
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "cancelled"
        assert body["outcome"] == "rejected"
        assert body["order"]["cancellation_reason"] == "Store closed early"
        assert body["order"]["status_display"]["is_terminal"] is True

    def test_reject_after_pickup(self, placed_order, client_for, admin_user):
        Order.objects.filter(pk=placed_order["id"]).update(status="picked_up")
        response = client_for(admin_user).post(_url(placed_order["id"], "reject"))
        assert response.status_code == 400


class TestOrderReceipt:
    def test_receipt(self, placed_order, client_for, customer):
        response = client_for(customer).get(_url(placed_order["id"], "receipt"))
        assert response.status_code == 200
        receipt = response.json()
        assert receipt["kind"] == "order"
        assert receipt["number"] == placed_order["order_number"]
        assert receipt["customer_name"] == "Keisha Williams"
        assert receipt["payment_method"] == "Cash"
        assert receipt["total"] == "4200.00"
        assert receipt["total_display"] == "GYD$4,200"
        assert [a["label"] for a in receipt["amounts"]] == [
            "Subtotal",
            "Service Fee",
            "Delivery Fee",
        ]
        assert receipt["amounts"][0]["display"] == "GYD$3,000"
        assert receipt["details"]["store"] == "Demerara Kitchen"
        assert receipt["footer"][0] == "Thank you for your order!"
        lines = [line for section in receipt["sections"] for line in section["lines"]]
        assert [line["name"] for line in lines] == ["Chicken Curry"]

    def test_receipt_hidden_from_strangers(self, placed_order, client_for, other_customer):
        response = client_for(other_customer).get(_url(placed_order["id"], "receipt"))
        assert response.status_code == 404
