"""Invoice service layer.

Invoices are snapshots: line prices and totals are copied from the order
or errand when the invoice is issued and never recomputed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import IntegrityError, transaction

from modules.accounts.models import is_admin_user
from modules.orders.constants import PaymentStatus
from modules.receipts.exceptions import (
    InvoiceAlreadyExists,
    InvoiceNotFound,
    InvoicePermissionDenied,
    InvoiceSourceNotFound,
)
from modules.receipts.models import InvoicePaymentStatus

if TYPE_CHECKING:
    from modules.errands.repositories.interfaces import IErrandRepository
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.receipts.models import Invoice
    from modules.receipts.repositories.interfaces import IInvoiceRepository

logger = structlog.get_logger(__name__)

ERRAND_SERVICE_FALLBACK = "Errand Service"


def invoice_payment_status(payment_status: str) -> str:
    if payment_status == PaymentStatus.COMPLETED:
        return InvoicePaymentStatus.PAID
    return InvoicePaymentStatus.PENDING


def errand_service_name(errand: Any) -> str:
    if errand.subcategory_id and errand.subcategory:
        return errand.subcategory.name
    if errand.category_id and errand.category:
        return errand.category.name
    return ERRAND_SERVICE_FALLBACK


class InvoiceService:
    def __init__(
        self,
        invoice_repository: IInvoiceRepository,
        order_repository: IOrderRepository,
        errand_repository: IErrandRepository,
    ) -> None:
        self._repo = invoice_repository
        self._order_repo = order_repository
        self._errand_repo = errand_repository

    @transaction.atomic
    def create_from_order(self, order_id: Any, user: Any) -> Invoice:
        """Issue the invoice for an order.

        Raises:
            InvoiceSourceNotFound: order does not exist or was deleted.
            InvoicePermissionDenied: caller is neither a party to the order nor admin.
            InvoiceAlreadyExists: the order was invoiced before.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise InvoiceSourceNotFound(f"Order {order_id} not found.")
        if not (is_admin_user(user) or user.pk in (order.customer_id, order.driver_id)):
            raise InvoicePermissionDenied("You cannot invoice this order.")
        already_invoiced = f"Order {order.order_number} already has an invoice."
        if self._repo.exists_for(order_id=order.id):
            raise InvoiceAlreadyExists(already_invoiced)

        items: List[Dict[str, Any]] = [
            {
                "service_name": item.product_name,
                "quantity": item.quantity,
                "price": item.product_price,
            }
            for item in order.items.all()
        ]
        invoice = self._create(
            {
                "customer_id": order.customer_id,
                "driver_id": order.driver_id,
                "order_id": order.id,
                "subtotal": order.subtotal,
                "service_fee": order.delivery_fee,
                "tax": order.tax,
                "discount": order.discount,
                "total": order.total,
                "currency": order.currency,
                "payment_status": invoice_payment_status(order.payment_status),
                "notes": f"Store: {order.store.name}",
            },
            items,
            already_invoiced,
        )
        logger.info(
            "invoice.created",
            invoice_number=invoice.invoice_number,
            order_id=str(order.id),
            total=str(order.total),
        )
        return self.get_invoice(str(invoice.id))

    @transaction.atomic
    def create_from_errand(self, errand_id: Any, user: Any) -> Invoice:
        """Issue the invoice for an errand (administrators only)."""
        if not is_admin_user(user):
            raise InvoicePermissionDenied("Only administrators can invoice errands.")
        errand = self._errand_repo.get_by_id(str(errand_id))
        if errand is None:
            raise InvoiceSourceNotFound(f"Errand {errand_id} not found.")
        already_invoiced = f"Errand {errand.errand_number} already has an invoice."
        if self._repo.exists_for(errand_id=errand.id):
            raise InvoiceAlreadyExists(already_invoiced)

        invoice = self._create(
            {
                "customer_id": errand.customer_id,
                "driver_id": errand.runner_id,
                "errand_id": errand.id,
                "subtotal": errand.total_price,
                "service_fee": Decimal("0.00"),
                "total": errand.total_price,
                "currency": errand.currency,
                "payment_status": invoice_payment_status(errand.payment_status),
                "notes": errand.instructions,
            },
            [
                {
                    "service_name": errand_service_name(errand),
                    "description": errand.custom_description,
                    "quantity": 1,
                    "price": errand.total_price,
                }
            ],
            already_invoiced,
        )
        logger.info(
            "invoice.created",
            invoice_number=invoice.invoice_number,
            errand_id=str(errand.id),
            total=str(errand.total_price),
        )
        return self.get_invoice(str(invoice.id))

    def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = self._repo.get_by_id(invoice_id)
        if not invoice:
            raise InvoiceNotFound(f"Invoice {invoice_id} not found.")
        return invoice

    def list_invoices(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list(filters)

    def _create(
        self, data: Dict[str, Any], items: List[Dict[str, Any]], already_invoiced: str
    ) -> Invoice:
        # A concurrent request can pass ``exists_for`` too; the one-to-one
        # constraint on the source decides.
        try:
            return self._repo.create(data, items)
        except IntegrityError as exc:
            logger.warning("invoice.duplicate_source", error=str(exc))
            raise InvoiceAlreadyExists(already_invoiced) from exc
