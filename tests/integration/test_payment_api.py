"""Integration tests for the payment endpoints."""

import pytest

from modules.core.models import OutboxEvent
from modules.orders.models import Order
from modules.payments.dtos import PaymentIntentDTO
from modules.payments.exceptions import PaymentProviderError
from modules.payments.providers import CardPaymentProvider

pytestmark = pytest.mark.integration


@pytest.fixture()
def order_id(client_for, customer, store, product):
    response = client_for(customer).post(
        "/api/v1/orders/",
        {
            "store_id": str(store.id),
            "items": [{"product_id": str(product.id), "quantity": 2}],
        },
        format="json",
    )
    return response.json()["id"]


def _url(order_id, action=""):
    return f"/api/v1/payments/{order_id}/{action + '/' if action else ''}"


def test_status(client_for, customer, order_id):
    response = client_for(customer).get(_url(order_id))
    assert response.status_code == 200
    assert response.json() == {"status": "pending", "method": "cash", "amount": "4200.00"}


def test_status_hidden_from_strangers(client_for, other_customer, order_id):
    assert client_for(other_customer).get(_url(order_id)).status_code == 404


def test_card_intent_on_web(client_for, customer, order_id):
    response = client_for(customer).post(
        _url(order_id, "card-intent"), HTTP_X_CLIENT_PLATFORM="web"
    )
    assert response.status_code == 400
    assert "mobile app" in response.json()["detail"]


def test_card_intent_without_platform(client_for, customer, order_id):
    response = client_for(customer).post(_url(order_id, "card-intent"))
    assert response.status_code == 400


def test_card_intent_native(monkeypatch, client_for, customer, order_id):
    def fake_intent(self, order, currency=None):
        return PaymentIntentDTO(
            id="pi_native",
            amount=order.total,
            currency="usd",
            status="requires_payment_method",
            client_secret="pi_native_secret",
        )

    monkeypatch.setattr(CardPaymentProvider, "create_intent", fake_intent)
    response = client_for(customer).post(
        _url(order_id, "card-intent"), HTTP_X_CLIENT_PLATFORM="android"
    )

    assert response.status_code == 201
    assert response.json()["client_secret"] == "pi_native_secret"
    order = Order.objects.get(pk=order_id)
    assert order.payment_method == "card"
    assert order.payment_status == "processing"
    assert order.payment_reference == "pi_native"
    assert OutboxEvent.objects.filter(
        aggregate_id=order_id, event_type="OrderPaymentUpdated"
    ).exists()


def test_card_provider_failure(monkeypatch, client_for, customer, order_id):
    def failing_intent(self, order, currency=None):
        raise PaymentProviderError("Failed to create payment intent.")

    monkeypatch.setattr(CardPaymentProvider, "create_intent", failing_intent)
    response = client_for(customer).post(
        _url(order_id, "card-intent"), HTTP_X_CLIENT_PLATFORM="ios"
    )
    assert response.status_code == 502
    assert Order.objects.get(pk=order_id).payment_status == "pending"


def test_cash(client_for, customer, order_id):
    response = client_for(customer).post(_url(order_id, "cash"))
    assert response.status_code == 200
    assert response.json()["payment_status"] == "pending"


def test_mobile_money(client_for, customer, order_id):
    response = client_for(customer).post(
        _url(order_id, "mobile-money"), {"phone_number": "+592 600 1234"}, format="json"
    )
    assert response.status_code == 200
    assert response.json()["transaction_id"].startswith("mmg_")
    assert Order.objects.get(pk=order_id).payment_method == "mobile_money"


def test_mobile_money_invalid_number(client_for, customer, order_id):
    response = client_for(customer).post(
        _url(order_id, "mobile-money"), {"phone_number": "12345"}, format="json"
    )
    assert response.status_code == 400


def test_refund_is_admin_only(client_for, customer, admin_user, order_id):
    assert client_for(customer).post(_url(order_id, "refund")).status_code == 403

    response = client_for(admin_user).post(
        _url(order_id, "refund"), {"reason": "Customer cancelled"}, format="json"
    )
    assert response.status_code == 200
    assert response.json()["payment_status"] == "refunded"
    assert Order.objects.get(pk=order_id).payment_status == "refunded"


@pytest.fixture()
def card_order_id(monkeypatch, client_for, customer, order_id):
    def fake_intent(self, order, currency=None):
        return PaymentIntentDTO(
            id="pi_sheet",
            amount=order.total,
            currency="usd",
            status="requires_payment_method",
            client_secret="pi_sheet_secret",
        )

    monkeypatch.setattr(CardPaymentProvider, "create_intent", fake_intent)
    response = client_for(customer).post(
        _url(order_id, "card-intent"), HTTP_X_CLIENT_PLATFORM="ios"
    )
    assert response.status_code == 201
    return order_id


def test_card_confirm_completes_payment_and_invoice_is_paid(
    client_for, customer, card_order_id
):
    client = client_for(customer)
    response = client.post(
        _url(card_order_id, "card-confirm"),
        {"intent_id": "pi_sheet", "succeeded": True},
        format="json",
    )
    assert response.status_code == 200
    assert response.json()["payment_status"] == "completed"
    assert Order.objects.get(pk=card_order_id).payment_status == "completed"

    invoice = client.post(
        "/api/v1/invoices/from-order/", {"order_id": card_order_id}, format="json"
    )
    assert invoice.status_code == 201
    assert invoice.json()["payment_status"] == "Paid"


def test_card_confirm_failure(client_for, customer, card_order_id):
    response = client_for(customer).post(
        _url(card_order_id, "card-confirm"),
        {"intent_id": "pi_sheet", "succeeded": False},
        format="json",
    )
    assert response.status_code == 200
    assert response.json()["success"] is False
    assert Order.objects.get(pk=card_order_id).payment_status == "failed"


def test_card_confirm_wrong_intent(client_for, customer, card_order_id):
    response = client_for(customer).post(
        _url(card_order_id, "card-confirm"),
        {"intent_id": "pi_other", "succeeded": True},
        format="json",
    )
    assert response.status_code == 400
    assert Order.objects.get(pk=card_order_id).payment_status == "processing"


def test_card_confirm_twice_conflicts(client_for, customer, card_order_id):
    client = client_for(customer)
    url = _url(card_order_id, "card-confirm")
    first = client.post(url, {"intent_id": "pi_sheet", "succeeded": True}, format="json")
    assert first.status_code == 200
    second = client.post(url, {"intent_id": "pi_sheet", "succeeded": False}, format="json")
    assert second.status_code == 409


def test_card_confirm_hidden_from_strangers(client_for, other_customer, card_order_id):
    response = client_for(other_customer).post(
        _url(card_order_id, "card-confirm"),
        {"intent_id": "pi_sheet", "succeeded": True},
        format="json",
    )
    assert response.status_code == 404


def test_mark_paid_is_admin_only(client_for, customer, admin_user, order_id):
    assert client_for(customer).post(_url(order_id, "mark-paid")).status_code == 403

    response = client_for(admin_user).post(_url(order_id, "mark-paid"))
    assert response.status_code == 200
    assert Order.objects.get(pk=order_id).payment_status == "completed"

    again = client_for(admin_user).post(_url(order_id, "mark-paid"))
    assert again.status_code == 409
