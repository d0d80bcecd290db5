"""Invoice repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from django.db import models

    from modules.receipts.models import Invoice


class IInvoiceRepository(ABC):
    @abstractmethod
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Invoice:
        """Create an invoice and its lines atomically."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Invoice]:
        """Invoice with its lines, ``None`` when missing."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Invoice]":
        """Invoices matching ORM look-ups."""

    @abstractmethod
    def exists_for(self, *, order_id: Any = None, errand_id: Any = None) -> bool:
        """Whether the order or errand already has an invoice."""
