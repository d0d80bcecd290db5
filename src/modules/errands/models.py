"""Errand reference data and the Errand aggregate.

- ErrandCategory / ErrandSubcategory are read-only catalogue rows.
- ``errand_number`` is generated on first save (``ERR-YYYYMMDD-XXXXXX``).
- Price invariant: ``total_price = base_price + distance_fee + complexity_fee``.
- Each status change appends an ErrandStatusUpdate row and stamps the
  matching ``*_at`` field.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, ReferenceNumberMixin, SoftDeleteModel
from modules.errands.constants import (
    CUSTOM_ERRAND_LABEL,
    ERRAND_FLOW,
    STATUS_TIMESTAMP_FIELDS,
    ErrandStatus,
)
from modules.orders.constants import PaymentMethod, PaymentStatus
from shared.domain.events import DomainEventMixin
from shared.domain.lifecycle import StatusView

ZERO = Decimal("0.00")


class ErrandCategory(BaseModel):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default="")
    icon = models.CharField(max_length=50, blank=True, default="")
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "errand_categories"
        ordering = ["display_order", "name"]
        verbose_name_plural = "errand categories"

    def __str__(self) -> str:
        return self.name


class ErrandSubcategory(BaseModel):
    category = models.ForeignKey(
        "errands.ErrandCategory",
        on_delete=models.CASCADE,
        related_name="subcategories",
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    icon = models.CharField(max_length=50, blank=True, default="")
    base_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    estimated_time = models.CharField(max_length=50, blank=True, default="")
    requires_authorization = models.BooleanField(default=False)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "errand_subcategories"
        ordering = ["display_order", "name"]
        verbose_name_plural = "errand subcategories"
        constraints = [
            models.UniqueConstraint(
                fields=["category", "name"],
                name="errand_subcategory_unique_name",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.category} / {self.name}"


class Errand(ReferenceNumberMixin, DomainEventMixin, SoftDeleteModel):
    """Errand aggregate root: a pickup/drop-off task with no line items."""

    reference_prefix = "ERR"
    reference_field = "errand_number"

    errand_number = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="errands",
    )
    runner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="runs",
    )
    category = models.ForeignKey(
        "errands.ErrandCategory",
        on_delete=models.PROTECT,
        related_name="errands",
    )
    subcategory = models.ForeignKey(
        "errands.ErrandSubcategory",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="errands",
    )
    status = models.CharField(
        max_length=20,
        choices=ErrandStatus.choices,
        default=ErrandStatus.PENDING,
    )

    pickup_address = models.TextField(blank=True, default="")
    pickup_latitude = models.FloatField(null=True, blank=True)
    pickup_longitude = models.FloatField(null=True, blank=True)
    dropoff_address = models.TextField(blank=True, default="")
    dropoff_latitude = models.FloatField(null=True, blank=True)
    dropoff_longitude = models.FloatField(null=True, blank=True)
    city = models.CharField(max_length=100, blank=True, default="")
    customer_phone = models.CharField(max_length=20, blank=True, default="")

    instructions = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")
    custom_description = models.TextField(blank=True, default="")
    is_asap = models.BooleanField(default=True)
    scheduled_time = models.DateTimeField(null=True, blank=True)

    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    distance_fee = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    complexity_fee = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    distance_km = models.DecimalField(max_digits=8, decimal_places=3, null=True, blank=True)
    complexity = models.CharField(max_length=10, default="low")
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

    cancellation_reason = models.TextField(blank=True, default="")
    assigned_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    at_pickup_at = models.DateTimeField(null=True, blank=True)
    pickup_complete_at = models.DateTimeField(null=True, blank=True)
    en_route_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "errands"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="errands_status_idx"),
            models.Index(fields=["-created_at"], name="errands_created_idx"),
            models.Index(fields=["runner", "status"], name="errands_runner_status_idx"),
        ]

    @property
    def is_terminal(self) -> bool:
        return ERRAND_FLOW.is_terminal(self.status)

    @property
    def status_view(self) -> StatusView:
        return ERRAND_FLOW.describe(self.status)

    @property
    def service_type(self) -> str:
        if self.subcategory_id and self.subcategory:
            return self.subcategory.name
        return CUSTOM_ERRAND_LABEL

    def stamp_status(self, status: str) -> Optional[str]:
        field = STATUS_TIMESTAMP_FIELDS.get(status)
        if field:
            setattr(self, field, timezone.now())
        return field

    def clean(self) -> None:
        super().clean()
        if self.total_price != self.base_price + self.distance_fee + self.complexity_fee:
            raise ValidationError(
                {"total_price": "Total must equal base price + distance fee + complexity fee."}
            )
        if not self.is_asap and self.scheduled_time is None:
            raise ValidationError({"scheduled_time": "Scheduled errands need a time."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.assign_reference()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.errand_number} ({self.status})"


class ErrandStatusUpdate(BaseModel):
    """Append-only audit trail of errand status changes."""

    errand = models.ForeignKey(
        "errands.Errand",
        on_delete=models.CASCADE,
        related_name="status_updates",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=ErrandStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=ErrandStatus.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "errand_status_updates"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["errand", "-created_at"], name="esu_errand_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.errand} : {self.old_status} -> {self.new_status}"
