"""Event handlers for Orders domain events.

Run in-process after the transaction commits; realtime delivery to
clients goes through the outbox, not through these handlers.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderAssigned,
    OrderCancelled,
    OrderCreated,
    OrderPaymentUpdated,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
            total=event.total,
        )


class OrderAssignedHandler(IEventHandler[OrderAssigned]):
    def handle(self, event: OrderAssigned) -> None:
        logger.info(
            "order.event.assigned",
            order_id=str(event.aggregate_id),
            driver_id=event.driver_id,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
            actor_id=event.actor_id,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            reason=event.reason,
        )


class OrderPaymentUpdatedHandler(IEventHandler[OrderPaymentUpdated]):
    def handle(self, event: OrderPaymentUpdated) -> None:
        logger.info(
            "order.event.payment_updated",
            order_id=str(event.aggregate_id),
            payment_status=event.payment_status,
            payment_method=event.payment_method,
        )


order_created_handler = OrderCreatedHandler()
order_assigned_handler = OrderAssignedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_payment_updated_handler = OrderPaymentUpdatedHandler()
