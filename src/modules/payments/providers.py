"""Card payment providers, one per client platform.

Native clients get payment intents from the hosted payment function; the
web build has no card SDK and a missing or unknown platform flag resolves
to the fallback provider.  Callers only see ``PaymentProvider``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any, Optional

import httpx
import structlog
from django.conf import settings

from modules.payments.dtos import PaymentIntentDTO
from modules.payments.exceptions import PaymentProviderError, PaymentUnavailable

logger = structlog.get_logger(__name__)

PLATFORM_HEADER = "X-Client-Platform"


class Platform(StrEnum):
    NATIVE = "native"
    WEB = "web"
    FALLBACK = "fallback"

    @classmethod
    def parse(cls, value: Optional[str]) -> Platform:
        normalized = (value or "").strip().lower()
        if normalized in {"ios", "android"}:
            return cls.NATIVE
        try:
            return cls(normalized)
        except ValueError:
            return cls.FALLBACK


def to_minor_units(amount: Decimal) -> int:
    """Cents for the card processor."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentProvider(ABC):
    platform: Platform

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    def create_intent(self, order: Any, currency: Optional[str] = None) -> PaymentIntentDTO:
        """Start a card payment for *order*."""


class CardPaymentProvider(PaymentProvider):
    platform = Platform.NATIVE

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        conf = settings.PAYMENTS
        self._url = conf["FUNCTION_URL"] if url is None else url
        self._token = conf["FUNCTION_TOKEN"] if token is None else token
        self._timeout = conf["TIMEOUT"] if timeout is None else timeout
        self._currency = conf["CARD_CURRENCY"]
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self._url)

    def create_intent(self, order: Any, currency: Optional[str] = None) -> PaymentIntentDTO:
        if not self.available:
            raise PaymentUnavailable("Card payments are not configured.")

        currency = currency or self._currency
        body = {
            "amount": to_minor_units(order.total),
            "currency": currency,
            "orderId": str(order.id),
            "customerId": str(order.customer_id),
            "description": f"Order #{order.order_number}",
        }
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        log = logger.bind(order_id=str(order.id), amount=body["amount"], currency=currency)

        try:
            if self._client is not None:
                response = self._client.post(self._url, json=body, headers=headers)
            else:
                response = httpx.post(self._url, json=body, headers=headers, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("payment.intent_failed", error=str(exc))
            raise PaymentProviderError("Failed to create payment intent.") from exc

        if not data or not data.get("clientSecret"):
            log.warning("payment.intent_invalid_response")
            raise PaymentProviderError("Invalid response from payment service.")

        log.info("payment.intent_created", payment_intent_id=data.get("paymentIntentId"))
        return PaymentIntentDTO(
            id=data.get("paymentIntentId", ""),
            amount=order.total,
            currency=currency,
            status=data.get("status", "requires_payment_method"),
            client_secret=data["clientSecret"],
        )


class WebPaymentProvider(PaymentProvider):
    platform = Platform.WEB

    @property
    def available(self) -> bool:
        return False

    def create_intent(self, order: Any, currency: Optional[str] = None) -> PaymentIntentDTO:
        raise PaymentUnavailable(
            "Card payments are not available on web. Please use the mobile app."
        )


class FallbackPaymentProvider(PaymentProvider):
    platform = Platform.FALLBACK

    @property
    def available(self) -> bool:
        return False

    def create_intent(self, order: Any, currency: Optional[str] = None) -> PaymentIntentDTO:
        raise PaymentUnavailable("Payment provider not configured for this platform.")


def get_payment_provider(platform: Optional[str]) -> PaymentProvider:
    resolved = Platform.parse(platform)
    if resolved == Platform.NATIVE:
        return CardPaymentProvider()
    if resolved == Platform.WEB:
        return WebPaymentProvider()
    return FallbackPaymentProvider()
