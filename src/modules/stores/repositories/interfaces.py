"""Store repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

if TYPE_CHECKING:
    from django.db import models

    from modules.stores.models import Product, Store


class IStoreRepository(ABC):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Store]:
        """Retrieve a live store, ``None`` when missing or soft-deleted."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Store]":
        """List live stores."""

    @abstractmethod
    def list_products(self, store_id: str) -> "models.QuerySet[Product]":
        """Live products of one store."""

    @abstractmethod
    def get_products(self, store_id: str, product_ids: Iterable[str]) -> List[Product]:
        """Products of *store_id* among *product_ids*; missing ids are omitted."""
