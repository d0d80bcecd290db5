"""Payment service layer.

Card payments go through the platform provider and stay ``processing``
until the payment sheet reports the outcome.  Cash and mobile money are
recorded as ``pending`` until an administrator marks them paid.  Every
payment status change on an order emits ``OrderPaymentUpdated`` through
the outbox.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Callable, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import PaymentMethod, PaymentStatus
from modules.orders.events import OrderPaymentUpdated
from modules.payments.dtos import PaymentIntentDTO, PaymentResultDTO, PaymentStatusDTO
from modules.payments.exceptions import (
    InvalidMobileMoneyNumber,
    InvalidPaymentStatus,
    PaymentIntentMismatch,
    PaymentOrderNotFound,
)
from modules.payments.providers import PaymentProvider, get_payment_provider
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

MMG_NUMBER_PATTERN = re.compile(r"^(\+?592)?[0-9]{7}$")


def validate_mmg_number(number: str) -> bool:
    """Guyana numbers: ``+592XXXXXXX``, ``592XXXXXXX`` or ``XXXXXXX``."""
    return bool(MMG_NUMBER_PATTERN.match(re.sub(r"[\s-]", "", number or "")))


def format_mmg_number(number: str) -> str:
    cleaned = re.sub(r"[\s-]", "", number)
    if cleaned.startswith("+592"):
        return cleaned
    if cleaned.startswith("592"):
        return f"+{cleaned}"
    return f"+592{cleaned}"


def _millis() -> int:
    return int(timezone.now().timestamp() * 1000)


class PaymentService:
    def __init__(
        self,
        order_repository: IOrderRepository,
        event_bus: Optional[IEventBus] = None,
        provider_factory: Callable[[Optional[str]], PaymentProvider] = get_payment_provider,
    ) -> None:
        self._order_repo = order_repository
        self._event_bus = event_bus or default_event_bus
        self._provider_factory = provider_factory

    def create_card_intent(self, order_id: UUID, platform: Optional[str]) -> PaymentIntentDTO:
        """Raises ``PaymentUnavailable`` on web/unknown platforms and
        ``PaymentProviderError`` when the payment function fails.

        The payment function is called without holding the order row lock;
        the lock is taken afterwards only to record the intent.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise PaymentOrderNotFound(f"Order {order_id} not found.")
        provider = self._provider_factory(platform)
        intent = provider.create_intent(order)
        self._record_intent(order_id, intent)
        return intent

    @transaction.atomic
    def _record_intent(self, order_id: UUID, intent: PaymentIntentDTO) -> None:
        order = self._lock(order_id)
        order.payment_method = PaymentMethod.CARD
        order.payment_reference = intent.id
        self._update_status(
            order, PaymentStatus.PROCESSING, ["payment_method", "payment_reference"]
        )

    @transaction.atomic
    def confirm_card_payment(
        self, order_id: UUID, intent_id: str, succeeded: bool
    ) -> PaymentResultDTO:
        """Record the outcome reported by the card payment sheet.

        Raises:
            PaymentOrderNotFound: order does not exist.
            PaymentIntentMismatch: ``intent_id`` is not the order's current intent.
            InvalidPaymentStatus: the order is not waiting on a card payment.
        """
        order = self._lock(order_id)
        if order.payment_method != PaymentMethod.CARD or order.payment_reference != intent_id:
            raise PaymentIntentMismatch(
                f"Payment intent {intent_id} does not belong to order {order.order_number}."
            )
        if order.payment_status != PaymentStatus.PROCESSING:
            raise InvalidPaymentStatus(
                f"Card payment for order {order.order_number} is already {order.payment_status}."
            )

        outcome = PaymentStatus.COMPLETED if succeeded else PaymentStatus.FAILED
        self._update_status(order, outcome, [])
        return PaymentResultDTO(
            success=succeeded,
            payment_status=outcome.value,
            transaction_id=intent_id,
            error=None if succeeded else "Card payment failed.",
        )

    @transaction.atomic
    def mark_paid(self, order_id: UUID) -> PaymentResultDTO:
        """Settle a cash or MMG+ payment collected by hand."""
        order = self._lock(order_id)
        if order.payment_status != PaymentStatus.PENDING:
            raise InvalidPaymentStatus(
                f"Order {order.order_number} payment is already {order.payment_status}."
            )
        self._update_status(order, PaymentStatus.COMPLETED, [])
        return PaymentResultDTO(
            success=True,
            payment_status=PaymentStatus.COMPLETED.value,
            transaction_id=order.payment_reference or None,
        )

    @transaction.atomic
    def process_cash(self, order_id: UUID) -> PaymentResultDTO:
        order = self._lock(order_id)
        order.payment_method = PaymentMethod.CASH
        self._update_status(order, PaymentStatus.PENDING, ["payment_method"])
        return PaymentResultDTO(success=True, payment_status=PaymentStatus.PENDING.value)

    @transaction.atomic
    def process_mobile_money(self, order_id: UUID, phone_number: str) -> PaymentResultDTO:
        """MMG+ has no merchant integration yet; the payment stays pending
        until confirmed manually."""
        if not validate_mmg_number(phone_number):
            raise InvalidMobileMoneyNumber(f"{phone_number!r} is not a valid MMG number.")

        order = self._lock(order_id)
        transaction_id = f"mmg_{_millis()}"
        order.payment_method = PaymentMethod.MOBILE_MONEY
        order.payment_reference = transaction_id
        self._update_status(order, PaymentStatus.PENDING, ["payment_method", "payment_reference"])
        logger.info(
            "payment.mobile_money_requested",
            order_id=str(order.id),
            phone=format_mmg_number(phone_number),
        )
        return PaymentResultDTO(
            success=True,
            payment_status=PaymentStatus.PENDING.value,
            transaction_id=transaction_id,
        )

    @transaction.atomic
    def refund(self, order_id: UUID, reason: str = "") -> PaymentResultDTO:
        order = self._lock(order_id)
        refund_id = f"re_mock_{_millis()}"
        order.payment_reference = refund_id
        self._update_status(order, PaymentStatus.REFUNDED, ["payment_reference"])
        logger.info("payment.refunded", order_id=str(order.id), reason=reason)
        return PaymentResultDTO(
            success=True,
            payment_status=PaymentStatus.REFUNDED.value,
            transaction_id=refund_id,
        )

    def get_payment_status(self, order_id: str) -> PaymentStatusDTO:
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise PaymentOrderNotFound(f"Order {order_id} not found.")
        return PaymentStatusDTO(
            status=order.payment_status or PaymentStatus.PENDING.value,
            method=order.payment_method or PaymentMethod.CASH.value,
            amount=order.total,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, order_id: UUID) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise PaymentOrderNotFound(f"Order {order_id} not found.")
        return order

    def _update_status(self, order: Order, payment_status: str, fields: List[str]) -> None:
        previous = order.payment_status
        order.payment_status = payment_status
        order.add_domain_event(
            OrderPaymentUpdated(
                aggregate_id=order.id,
                payment_status=str(payment_status),
                payment_method=str(order.payment_method),
            )
        )
        events = order.domain_events
        self._order_repo.save(order, update_fields=["payment_status", *fields])
        transaction.on_commit(lambda: self._event_bus.publish_all(events))
        logger.info(
            "payment.status_updated",
            order_id=str(order.id),
            old_status=previous,
            new_status=str(payment_status),
            method=str(order.payment_method),
        )
