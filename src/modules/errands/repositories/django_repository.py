"""Django ORM implementation of the Errand repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.core.models import OutboxEvent
from modules.errands.models import (
    Errand,
    ErrandCategory,
    ErrandStatusUpdate,
    ErrandSubcategory,
)
from modules.errands.repositories.interfaces import IErrandRepository

logger = structlog.get_logger(__name__)

_RELATED = ("customer__profile", "runner__profile", "category", "subcategory")


class ErrandDjangoRepository(IErrandRepository):
    def _queryset(self) -> "models.QuerySet[Errand]":
        return (
            Errand.objects.alive()
            .select_related(*_RELATED)
            .prefetch_related("status_updates")
        )

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Errand:
        errand = Errand(**data)
        errand.save()
        logger.info("errand.persisted", errand_id=str(errand.id))
        return errand

    def get_by_id(self, id: str) -> Optional[Errand]:
        try:
            return self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Errand]:
        try:
            return (
                Errand.objects.alive()
                .select_for_update(of=("self",))
                .select_related(*_RELATED)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Errand]":
        queryset = Errand.objects.alive().select_related(*_RELATED)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Errand, update_fields: Optional[List[str]] = None) -> Errand:
        """Persist the errand and move its pending domain events to the outbox."""
        if update_fields:
            entity.save(update_fields=update_fields)
        else:
            entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.record(event)
        entity.clear_domain_events()

        logger.info("errand.saved", errand_id=str(entity.id), event_count=len(events))
        return entity

    @transaction.atomic
    def add_status_update(
        self,
        errand_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: Optional[Any] = None,
    ) -> ErrandStatusUpdate:
        update = ErrandStatusUpdate.objects.create(
            errand_id=errand_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user_id=user_id,
        )
        logger.info(
            "errand.status_update_added",
            errand_id=str(errand_id),
            old_status=old_status,
            new_status=status,
        )
        return update

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    def get_category(self, id: str) -> Optional[ErrandCategory]:
        try:
            return ErrandCategory.objects.filter(id=id, is_active=True).first()
        except (ValueError, ValidationError):
            return None

    def get_subcategory(self, id: str) -> Optional[ErrandSubcategory]:
        try:
            return (
                ErrandSubcategory.objects.select_related("category")
                .filter(id=id, is_active=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list_categories(self) -> "models.QuerySet[ErrandCategory]":
        return ErrandCategory.objects.filter(is_active=True)

    def list_subcategories(self, category_id: str) -> "models.QuerySet[ErrandSubcategory]":
        return ErrandSubcategory.objects.filter(category_id=category_id, is_active=True)
