"""Django ORM implementation of the Order repository.

All write operations are wrapped in ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems + outbox rows) is persisted atomically.
Status updates lock the row with ``select_for_update()``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_RELATED = ("customer__profile", "driver__profile", "store")
_PREFETCH = ("items", "status_history")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _queryset(self) -> "models.QuerySet[Order]":
        return (
            Order.objects.alive()
            .select_related(*_RELATED)
            .prefetch_related(*_PREFETCH)
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        fields = {key: value for key, value in data.items() if key != "items"}
        order = Order(**fields)
        order.save()

        items_total = Decimal("0.00")
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(order=order, **item_data)
            item.save()
            items_total += item.subtotal

        logger.bind(order_id=str(order.id), item_count=len(items)).info(
            "order.persisted", items_total=str(items_total)
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Order with customer, driver, store, items and history eager-loaded.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Order with a row-level lock held until the transaction ends."""
        try:
            return (
                Order.objects.alive()
                .select_for_update(of=("self",))
                .select_related(*_RELATED)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """Supported filter keys are any Order look-ups, e.g. ``status``,
        ``customer_id``, ``driver_id`` or ``created_at__range``."""
        queryset = Order.objects.alive().select_related(*_RELATED)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return self._queryset().filter(idempotency_key=key).first()

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order, update_fields: Optional[List[str]] = None) -> Order:
        """Persist the order and move its pending domain events to the outbox."""
        if update_fields:
            entity.save(update_fields=update_fields)
        else:
            entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.record(event)
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[Any] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user_id=user_id,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history
