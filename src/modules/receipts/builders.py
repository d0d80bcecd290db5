"""Receipt documents for orders and errands.

A receipt is a read-only view assembled from the persisted entity: item
lines grouped into categorized sections, formatted totals, and the contact
details resolved by ``modules.accounts.contacts``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from modules.accounts.contacts import (
    resolve_assignee_name,
    resolve_errand_contact,
    resolve_order_contact,
)
from modules.errands.constants import ERRAND_FLOW
from modules.orders.constants import ORDER_FLOW, PaymentMethod
from modules.pricing.currency import format_currency
from modules.receipts.categorizer import categorize, sort_categories

SUPPORT_PHONE = "592-721-9769"
ORDER_FOOTER = ("Thank you for your order!", f"For support: {SUPPORT_PHONE}")
ERRAND_FOOTER = ("Thank you for using ErrandRunners!", f"For support: {SUPPORT_PHONE}")


def payment_method_label(method: str) -> str:
    """``mobile_money`` is shown under its brand name, MMG+."""
    try:
        return PaymentMethod(method).label
    except ValueError:
        return (method or "").capitalize()


@dataclass(frozen=True)
class ReceiptLine:
    name: str
    quantity: int
    unit_price: Decimal
    total: Decimal

    @property
    def unit_price_display(self) -> str:
        return format_currency(self.unit_price)

    @property
    def total_display(self) -> str:
        return format_currency(self.total)


@dataclass(frozen=True)
class ReceiptSection:
    label: str
    lines: List[ReceiptLine]


@dataclass(frozen=True)
class ReceiptAmount:
    label: str
    amount: Decimal

    @property
    def display(self) -> str:
        return format_currency(self.amount)


@dataclass(frozen=True)
class Receipt:
    kind: str
    number: str
    issued_at: datetime
    status: str
    status_label: str
    customer_name: str
    customer_phone: Optional[str]
    address: Optional[str]
    assignee_name: Optional[str]
    payment_method: str
    payment_status: str
    sections: List[ReceiptSection] = field(default_factory=list)
    amounts: List[ReceiptAmount] = field(default_factory=list)
    total: Decimal = Decimal("0")
    details: dict = field(default_factory=dict)
    footer: List[str] = field(default_factory=list)

    @property
    def total_display(self) -> str:
        return format_currency(self.total)


def _sections(lines: List[ReceiptLine]) -> List[ReceiptSection]:
    groups = categorize(lines, name_of=lambda line: line.name)
    return [ReceiptSection(label, groups[label]) for label in sort_categories(groups)]


def build_order_receipt(order: Any) -> Receipt:
    contact = resolve_order_contact(order)
    lines = [
        ReceiptLine(
            name=item.product_name,
            quantity=item.quantity,
            unit_price=item.product_price,
            total=item.subtotal,
        )
        for item in order.items.all()
    ]
    items_total = sum((line.total for line in lines), Decimal("0"))

    amounts = [
        ReceiptAmount("Subtotal", items_total),
        ReceiptAmount("Service Fee", order.service_fee),
        ReceiptAmount("Delivery Fee", order.delivery_fee),
    ]
    if order.tax:
        amounts.append(ReceiptAmount("Tax", order.tax))
    if order.discount:
        amounts.append(ReceiptAmount("Discount", -order.discount))

    return Receipt(
        kind="order",
        number=order.order_number,
        issued_at=order.created_at,
        status=order.status,
        status_label=ORDER_FLOW.label(order.status),
        customer_name=contact.name,
        customer_phone=contact.phone,
        address=contact.address,
        assignee_name=resolve_assignee_name(order.driver),
        payment_method=payment_method_label(order.payment_method),
        payment_status=order.payment_status,
        sections=_sections(lines),
        amounts=amounts,
        total=order.total,
        details={"store": order.store.name, "delivery_notes": order.delivery_notes},
        footer=list(ORDER_FOOTER),
    )


def build_errand_receipt(errand: Any) -> Receipt:
    """Errands are a single service line at the persisted total price."""
    contact = resolve_errand_contact(errand)
    service_type = errand.service_type
    line = ReceiptLine(
        name=service_type,
        quantity=1,
        unit_price=errand.total_price,
        total=errand.total_price,
    )
    return Receipt(
        kind="errand",
        number=errand.errand_number,
        issued_at=errand.created_at,
        status=errand.status,
        status_label=ERRAND_FLOW.label(errand.status),
        customer_name=contact.name,
        customer_phone=contact.phone,
        address=contact.address,
        assignee_name=resolve_assignee_name(errand.runner),
        payment_method=payment_method_label(errand.payment_method),
        payment_status=errand.payment_status,
        sections=[ReceiptSection("Service", [line])],
        amounts=[ReceiptAmount("Errand Price", errand.total_price)],
        total=errand.total_price,
        details={
            "service_type": service_type,
            "category": errand.category.name,
            "pickup_address": errand.pickup_address,
            "dropoff_address": errand.dropoff_address,
            "instructions": errand.instructions,
            "scheduled_time": None if errand.is_asap else errand.scheduled_time,
        },
        footer=list(ERRAND_FOOTER),
    )
