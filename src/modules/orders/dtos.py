"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``TransitionResultDTO``: output of accept/confirm/reject/advance.
"""

from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import PaymentMethod

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """A single line in a creation request.

    The price is resolved by the Service Layer from the store catalogue.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Order creation request.

    Validates:
    - ``items`` must contain at least one item, no product twice.
    - delivery coordinates come as a pair or not at all.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: int
    store_id: UUID
    items: List[CreateOrderItemDTO]
    payment_method: PaymentMethod = PaymentMethod.CASH
    delivery_address: str = ""
    city: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    delivery_notes: str = ""
    customer_phone: str = ""
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Latitude and longitude must be provided together.")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class TransitionResultDTO(BaseModel):
    """Outcome of a lifecycle command.

    ``changed`` is ``False`` for the informational "already at final
    status" outcome; ``message`` then carries the text shown to the user.
    """

    model_config = ConfigDict(frozen=True)

    order: Any
    previous_status: str
    status: str
    outcome: str
    changed: bool
    message: str = ""
