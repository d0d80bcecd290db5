"""Unit tests for platform resolution and the card payment provider."""

import json
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import httpx
import pytest

from modules.payments.exceptions import PaymentProviderError, PaymentUnavailable
from modules.payments.providers import (
    CardPaymentProvider,
    FallbackPaymentProvider,
    Platform,
    WebPaymentProvider,
    get_payment_provider,
    to_minor_units,
)

pytestmark = pytest.mark.unit

FUNCTION_URL = "https://functions.test/create-payment-intent"


@pytest.fixture()
def order():
    return SimpleNamespace(
        id=uuid4(), customer_id=7, order_number="ORD-20250101-ABC123", total=Decimal("4200.00")
    )


def _provider(handler, url=FUNCTION_URL) -> CardPaymentProvider:
    return CardPaymentProvider(
        url=url,
        token="service-token",
        timeout=1.0,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


class TestPlatform:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("native", Platform.NATIVE),
            ("iOS", Platform.NATIVE),
            ("android", Platform.NATIVE),
            ("web", Platform.WEB),
            (" WEB ", Platform.WEB),
            (None, Platform.FALLBACK),
            ("", Platform.FALLBACK),
            ("blackberry", Platform.FALLBACK),
        ],
    )
    def test_parse(self, raw, expected):
        assert Platform.parse(raw) == expected

    def test_factory_picks_provider(self):
        assert isinstance(get_payment_provider("android"), CardPaymentProvider)
        assert isinstance(get_payment_provider("web"), WebPaymentProvider)
        assert isinstance(get_payment_provider(None), FallbackPaymentProvider)


def test_minor_units():
    assert to_minor_units(Decimal("4200.00")) == 420000
    assert to_minor_units(Decimal("12.345")) == 1235


class TestCardPaymentProvider:
    def test_creates_intent(self, order):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "paymentIntentId": "pi_123",
                    "clientSecret": "pi_123_secret",
                    "status": "requires_payment_method",
                },
            )

        intent = _provider(handler).create_intent(order)

        assert intent.id == "pi_123"
        assert intent.client_secret == "pi_123_secret"
        assert intent.amount == Decimal("4200.00")
        assert seen["auth"] == "Bearer service-token"
        assert seen["body"] == {
            "amount": 420000,
            "currency": "usd",
            "orderId": str(order.id),
            "customerId": "7",
            "description": "Order #ORD-20250101-ABC123",
        }

    def test_currency_override(self, order):
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["currency"] == "gyd"
            return httpx.Response(200, json={"paymentIntentId": "pi_1", "clientSecret": "s"})

        assert _provider(handler).create_intent(order, currency="gyd").currency == "gyd"

    def test_http_error(self, order):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "stripe down"})

        with pytest.raises(PaymentProviderError, match="Failed to create payment intent."):
            _provider(handler).create_intent(order)

    def test_missing_client_secret(self, order):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"paymentIntentId": "pi_1"})

        with pytest.raises(PaymentProviderError, match="Invalid response"):
            _provider(handler).create_intent(order)

    def test_not_configured(self, order):
        provider = _provider(lambda request: httpx.Response(200), url="")
        assert provider.available is False
        with pytest.raises(PaymentUnavailable):
            provider.create_intent(order)


def test_web_and_fallback_refuse_card_payments(order):
    with pytest.raises(PaymentUnavailable, match="use the mobile app"):
        WebPaymentProvider().create_intent(order)
    with pytest.raises(PaymentUnavailable, match="not configured for this platform"):
        FallbackPaymentProvider().create_intent(order)
