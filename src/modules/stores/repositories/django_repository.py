"""Django ORM implementation of the Store repository.

Returns ``None`` / omits rows for missing ids instead of raising; the
service layer decides how a missing entity is reported.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db import models

from modules.stores.models import Product, Store
from modules.stores.repositories.interfaces import IStoreRepository


class StoreDjangoRepository(IStoreRepository):
    def get_by_id(self, id: str) -> Optional[Store]:
        try:
            return Store.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Store]":
        queryset = Store.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_products(self, store_id: str) -> "models.QuerySet[Product]":
        return Product.objects.alive().filter(store_id=store_id)

    def get_products(self, store_id: str, product_ids: Iterable[str]) -> List[Product]:
        ids = [str(pid) for pid in product_ids]
        try:
            return list(
                Product.objects.alive().filter(store_id=store_id, id__in=ids)
            )
        except (ValueError, ValidationError):
            return []
