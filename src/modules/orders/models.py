"""Order, OrderItem, and OrderStatusHistory models.

- ``order_number`` is generated on first save (``ORD-YYYYMMDD-XXXXXX``).
- Monetary invariant: ``total = subtotal + delivery_fee + tax - discount``.
  ``service_fee`` is folded into ``subtotal`` and also stored on its own for
  display.
- OrderItem snapshots product name and price at creation time; later
  catalogue edits never change an existing order.
- Each status change appends an OrderStatusHistory row and stamps the
  matching ``*_at`` field (see ``STATUS_TIMESTAMP_FIELDS``).
- Customer FK uses PROTECT to preserve financial history.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, ReferenceNumberMixin, SoftDeleteModel
from modules.orders.constants import (
    ORDER_FLOW,
    STATUS_TIMESTAMP_FIELDS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin
from shared.domain.lifecycle import StatusView

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def _money(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(max_digits=12, decimal_places=2, default=ZERO, **kwargs)


class Order(ReferenceNumberMixin, DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    ``driver`` stays ``NULL`` until somebody accepts the order; acceptance
    and status advance are independent, so an assigned order may still be
    ``pending``.
    """

    reference_prefix = "ORD"
    reference_field = "order_number"

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deliveries",
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )

    subtotal = _money()
    service_fee = _money()
    delivery_fee = _money()
    tax = _money()
    discount = _money()
    total = _money()
    currency = models.CharField(max_length=3, default="GYD")

    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_reference = models.CharField(max_length=255, blank=True, default="")

    delivery_address = models.TextField(blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    delivery_notes = models.TextField(blank=True, default="")
    customer_phone = models.CharField(max_length=20, blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    assigned_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    purchasing_at = models.DateTimeField(null=True, blank=True)
    preparing_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    in_transit_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["driver", "status"], name="orders_driver_status_idx"),
        ]

    # ------------------------------------------------------------------
    # State machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return ORDER_FLOW.is_terminal(self.status)

    @property
    def status_view(self) -> StatusView:
        return ORDER_FLOW.describe(self.status)

    def stamp_status(self, status: str) -> Optional[str]:
        """Set the timestamp for *status*; returns the field name touched."""
        field = STATUS_TIMESTAMP_FIELDS.get(status)
        if field:
            setattr(self, field, timezone.now())
        return field

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def recalculate_total(self) -> Decimal:
        self.total = self.subtotal + self.delivery_fee + self.tax - self.discount
        return self.total

    def clean(self) -> None:
        super().clean()
        expected = self.subtotal + self.delivery_fee + self.tax - self.discount
        if self.total != expected:
            raise ValidationError({"total": "Total must equal subtotal + delivery fee + tax - discount."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.assign_reference()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item with a snapshot of the product at purchase time.

    ``subtotal`` is always ``quantity * product_price``, recalculated on save.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "stores.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    product_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.product_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail of order status changes.

    ``user`` is ``None`` when the system made the change.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
