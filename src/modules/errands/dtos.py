"""Errand DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator

from modules.orders.constants import PaymentMethod
from modules.pricing.calculator import ComplexityTier


class CreateErrandDTO(BaseModel):
    """Errand creation request.

    Validates:
    - ASAP errands carry no schedule; scheduled ones must carry a time.
    - each coordinate pair is given completely or not at all.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: int
    category_id: UUID
    subcategory_id: Optional[UUID] = None
    pickup_address: str = ""
    pickup_latitude: Optional[float] = None
    pickup_longitude: Optional[float] = None
    dropoff_address: str = ""
    dropoff_latitude: Optional[float] = None
    dropoff_longitude: Optional[float] = None
    city: str = ""
    customer_phone: str = ""
    instructions: str = ""
    notes: str = ""
    custom_description: str = ""
    is_asap: bool = True
    scheduled_time: Optional[datetime] = None
    complexity: ComplexityTier = ComplexityTier.LOW
    payment_method: PaymentMethod = PaymentMethod.CASH

    @model_validator(mode="after")
    def schedule_is_consistent(self):
        if self.is_asap and self.scheduled_time is not None:
            raise ValueError("ASAP errands cannot have a scheduled time.")
        if not self.is_asap and self.scheduled_time is None:
            raise ValueError("Scheduled errands need a scheduled time.")
        return self

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self):
        for prefix in ("pickup", "dropoff"):
            lat = getattr(self, f"{prefix}_latitude")
            lng = getattr(self, f"{prefix}_longitude")
            if (lat is None) != (lng is None):
                raise ValueError(f"{prefix} latitude and longitude must be provided together.")
        return self

    @property
    def has_route(self) -> bool:
        return None not in (
            self.pickup_latitude,
            self.pickup_longitude,
            self.dropoff_latitude,
            self.dropoff_longitude,
        )


class ErrandTransitionResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    errand: Any
    previous_status: str
    status: str
    outcome: str
    changed: bool
    message: str = ""
