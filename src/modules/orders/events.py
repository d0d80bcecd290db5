"""Domain events for the Orders bounded context.

All order events are broadcast on the ``orders:<order_id>`` channel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from shared.domain.events import DomainEvent, StatusChanged


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    topic: ClassVar[str] = "orders"

    order_number: str = ""
    total: str = "0"


@dataclass(frozen=True)
class OrderAssigned(DomainEvent):
    """A driver took the order; the status is unchanged."""

    topic: ClassVar[str] = "orders"

    driver_id: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(StatusChanged):
    topic: ClassVar[str] = "orders"


@dataclass(frozen=True)
class OrderCancelled(StatusChanged):
    topic: ClassVar[str] = "orders"

    reason: str = ""


@dataclass(frozen=True)
class OrderPaymentUpdated(DomainEvent):
    topic: ClassVar[str] = "orders"

    payment_status: str = ""
    payment_method: str = ""
