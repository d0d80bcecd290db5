"""Store queries used by the catalogue API and the order service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog

from modules.stores.exceptions import ProductNotFound, ProductUnavailable, StoreNotFound

if TYPE_CHECKING:
    from modules.stores.models import Product, Store
    from modules.stores.repositories.interfaces import IStoreRepository

logger = structlog.get_logger(__name__)


class StoreService:
    def __init__(self, repository: IStoreRepository) -> None:
        self._repo = repository

    def list_stores(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list(filters)

    def get_store(self, id: str) -> Store:
        """Raises ``StoreNotFound``."""
        store = self._repo.get_by_id(id)
        if not store:
            raise StoreNotFound(f"Store {id} not found.")
        return store

    def list_products(self, store_id: str):
        self.get_store(store_id)
        return self._repo.list_products(store_id)

    def resolve_products(self, store_id: str, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Map each requested id to its product.

        Raises:
            ProductNotFound: an id is unknown or belongs to another store.
            ProductUnavailable: a product is out of stock.
        """
        wanted: List[str] = [str(pid) for pid in product_ids]
        found = {str(p.id): p for p in self._repo.get_products(store_id, wanted)}
        missing = [pid for pid in wanted if pid not in found]
        if missing:
            logger.warning("store.products_missing", store_id=str(store_id), missing=missing)
            raise ProductNotFound(f"Products not found in store {store_id}: {', '.join(missing)}")
        unavailable = [p.name for p in found.values() if not p.is_available]
        if unavailable:
            raise ProductUnavailable(f"Unavailable: {', '.join(unavailable)}")
        return found
