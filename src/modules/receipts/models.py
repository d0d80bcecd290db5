"""Invoice and InvoiceItem models.

An invoice is issued at most once per order and once per errand
(nullable one-to-one links).  ``invoice_number`` follows the shared
``INV-YYYYMMDD-XXXXXX`` format.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, ReferenceNumberMixin

ZERO = Decimal("0.00")


class InvoicePaymentStatus(models.TextChoices):
    PAID = "Paid", "Paid"
    PENDING = "Pending", "Pending"


class Invoice(ReferenceNumberMixin, BaseModel):
    reference_prefix = "INV"
    reference_field = "invoice_number"

    invoice_number = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="issued_invoices",
    )
    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoice",
    )
    errand = models.OneToOneField(
        "errands.Errand",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoice",
    )
    invoice_date = models.DateTimeField(default=timezone.now)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    service_fee = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    currency = models.CharField(max_length=3, default="GYD")
    payment_status = models.CharField(
        max_length=10,
        choices=InvoicePaymentStatus.choices,
        default=InvoicePaymentStatus.PENDING,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "invoices"
        ordering = ["-invoice_date"]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.assign_reference()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.invoice_number


class InvoiceItem(BaseModel):
    invoice = models.ForeignKey(
        "receipts.Invoice",
        on_delete=models.CASCADE,
        related_name="items",
    )
    service_name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2, editable=False)

    class Meta:
        db_table = "invoice_items"
        ordering = ["created_at"]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.total = self.quantity * self.price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.service_name} x{self.quantity}"
