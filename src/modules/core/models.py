"""Abstract models and outbox infrastructure shared by every module.

- ``BaseModel``: UUIDv7 primary key plus ``created_at`` / ``updated_at``.
- ``SoftDeleteModel``: ``deleted_at`` tombstone; ``objects`` stays unfiltered,
  use ``.alive()`` to hide deleted rows.
- ``ReferenceNumberMixin``: human-readable ``PREFIX-YYYYMMDD-XXXXXX`` numbers
  for orders, errands and invoices.
- ``OutboxEvent``: domain events written in the same transaction as the
  state change, later broadcast to realtime subscribers by
  ``core.publish_outbox_events``.
"""

from __future__ import annotations

import secrets
from typing import Any, ClassVar

import uuid6
from django.db import models
from django.utils import timezone

from shared.domain.events import DomainEvent

REFERENCE_NUMBER_MAX_RETRIES = 5


# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now is skipped when update_fields omits it
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Soft Delete infrastructure
# ---------------------------------------------------------------------------


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=True)

    def dead(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=False)

    def delete(self) -> tuple[int, dict[str, int]]:
        """Bulk soft-delete: stamps ``deleted_at`` on live rows only."""
        now = timezone.now()
        count = self.alive().update(deleted_at=now, updated_at=now)
        return count, {self.model._meta.label: count}

    def hard_delete(self) -> tuple[int, dict[str, int]]:
        return super().delete()


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    pass


class SoftDeleteModel(BaseModel):
    """Abstract model with soft-delete via a single ``deleted_at`` timestamp."""

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        default=None,
        db_index=True,
    )

    objects = SoftDeleteManager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        if self.is_deleted:
            return 0, {}
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at"])
        return 1, {self._meta.label: 1}

    def hard_delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        return super().delete(using=using, keep_parents=keep_parents)

    def restore(self) -> None:
        if not self.is_deleted:
            return
        self.deleted_at = None
        self.save(update_fields=["deleted_at"])


# ---------------------------------------------------------------------------
# Reference numbers
# ---------------------------------------------------------------------------


class ReferenceNumberMixin:
    """Generates ``<PREFIX>-YYYYMMDD-XXXXXX`` into ``reference_field`` on save.

    Retries a bounded number of times on collision; the field itself carries
    the UNIQUE constraint.
    """

    reference_prefix: ClassVar[str]
    reference_field: ClassVar[str]

    @classmethod
    def generate_reference(cls) -> str:
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"{cls.reference_prefix}-{now:%Y%m%d}-{suffix}"

    def assign_reference(self) -> None:
        if getattr(self, self.reference_field):
            return
        manager = type(self)._default_manager  # type: ignore[attr-defined]
        for _ in range(REFERENCE_NUMBER_MAX_RETRIES):
            candidate = self.generate_reference()
            if not manager.filter(**{self.reference_field: candidate}).exists():
                setattr(self, self.reference_field, candidate)
                return
        raise RuntimeError(
            f"Failed to generate unique {self.reference_field} after "
            f"{REFERENCE_NUMBER_MAX_RETRIES} attempts"
        )


# ---------------------------------------------------------------------------
# Transactional Outbox
# ---------------------------------------------------------------------------


class EventStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PUBLISHED = "PUBLISHED", "Published"
    FAILED = "FAILED", "Failed"


class OutboxEventQuerySet(models.QuerySet):
    def publishable(self, max_retries: int) -> OutboxEventQuerySet:
        """Pending events plus failed ones that still have retries left."""
        return self.filter(
            models.Q(status=EventStatus.PENDING)
            | models.Q(status=EventStatus.FAILED, retry_count__lt=max_retries)
        ).order_by("created_at", "id")


class OutboxEvent(BaseModel):
    """Domain event waiting to be broadcast on ``<topic>:<aggregate_id>``."""

    event_type = models.CharField(max_length=100)
    payload = models.JSONField()
    aggregate_id = models.CharField(max_length=255)
    topic = models.CharField(max_length=100)
    status = models.CharField(
        max_length=20,
        choices=EventStatus.choices,
        default=EventStatus.PENDING,
    )
    processed_at = models.DateTimeField(null=True, blank=True, default=None)
    error_message = models.TextField(null=True, blank=True, default=None)  # noqa: DJ01
    retry_count = models.PositiveIntegerField(default=0)

    objects = OutboxEventQuerySet.as_manager()

    class Meta:
        db_table = "outbox_events"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["aggregate_id"], name="outbox_aggregate_id_idx"),
            models.Index(
                fields=["status", "created_at"],
                name="outbox_status_created_idx",
            ),
        ]

    @classmethod
    def record(cls, event: DomainEvent) -> OutboxEvent:
        """Persist *event*; call inside the transaction that produced it."""
        return cls.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=event.to_payload(),
            topic=event.topic,
        )

    @property
    def channel(self) -> str:
        return f"{self.topic}:{self.aggregate_id}"

    def mark_as_published(self) -> None:
        self.status = EventStatus.PUBLISHED
        self.processed_at = timezone.now()
        self.error_message = None
        self.save(update_fields=["status", "processed_at", "error_message"])

    def mark_as_failed(self, error: str) -> None:
        self.status = EventStatus.FAILED
        self.error_message = error
        self.retry_count += 1
        self.save(update_fields=["status", "error_message", "retry_count"])

    def as_message(self) -> dict[str, Any]:
        return {
            "channel": self.channel,
            "event": self.event_type,
            "payload": self.payload,
        }

    def __str__(self) -> str:
        return f"{self.event_type} [{self.status}] ({self.aggregate_id})"
