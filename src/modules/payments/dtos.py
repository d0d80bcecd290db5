"""Payment DTOs returned by providers and the payment service."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PaymentIntentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    amount: Decimal
    currency: str
    status: str
    client_secret: Optional[str] = None


class PaymentResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    payment_status: str
    transaction_id: Optional[str] = None
    error: Optional[str] = None


class PaymentStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    method: str
    amount: Decimal
