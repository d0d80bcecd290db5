"""Django ORM implementation of the Invoice repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.receipts.models import Invoice, InvoiceItem
from modules.receipts.repositories.interfaces import IInvoiceRepository

logger = structlog.get_logger(__name__)


class InvoiceDjangoRepository(IInvoiceRepository):
    @transaction.atomic
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Invoice:
        invoice = Invoice(**data)
        invoice.save()
        for item in items:
            InvoiceItem(invoice=invoice, **item).save()
        logger.info(
            "invoice.persisted",
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
            item_count=len(items),
        )
        return invoice

    def get_by_id(self, id: str) -> Optional[Invoice]:
        try:
            return (
                Invoice.objects.select_related("customer__profile", "driver__profile")
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Invoice]":
        queryset = Invoice.objects.select_related("customer", "driver")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def exists_for(self, *, order_id: Any = None, errand_id: Any = None) -> bool:
        if order_id is not None:
            return Invoice.objects.filter(order_id=order_id).exists()
        if errand_id is not None:
            return Invoice.objects.filter(errand_id=errand_id).exists()
        return False
