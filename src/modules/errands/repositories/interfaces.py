"""Errand repository interface.

Covers the Errand aggregate (errand + status updates) and the read-only
category catalogue it references.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.errands.models import (
        Errand,
        ErrandCategory,
        ErrandStatusUpdate,
        ErrandSubcategory,
    )


class IErrandRepository(IRepository["Errand"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Errand:
        """Create an errand from field values."""

    @abstractmethod
    def add_status_update(
        self,
        errand_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[Any] = None,
    ) -> ErrandStatusUpdate:
        """Record a status change in the errand's audit trail."""

    @abstractmethod
    def get_category(self, id: str) -> Optional[ErrandCategory]:
        """Active category by id."""

    @abstractmethod
    def get_subcategory(self, id: str) -> Optional[ErrandSubcategory]:
        """Active subcategory by id, with its category."""

    @abstractmethod
    def list_categories(self) -> "models.QuerySet[ErrandCategory]":
        """Active categories in display order."""

    @abstractmethod
    def list_subcategories(self, category_id: str) -> "models.QuerySet[ErrandSubcategory]":
        """Active subcategories of one category in display order."""
