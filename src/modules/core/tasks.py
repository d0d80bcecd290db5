"""Background tasks for the core module."""

from __future__ import annotations

from typing import Optional

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.models import OutboxEvent
from modules.core.realtime import BroadcastError, RealtimeBroadcaster

logger = structlog.get_logger(__name__)

OUTBOX_MAX_RETRIES = 5


def publish_pending_events(
    broadcaster: Optional[RealtimeBroadcaster] = None,
    batch_size: Optional[int] = None,
) -> dict[str, int]:
    """Broadcast publishable outbox events in creation order.

    A failed broadcast marks only that event as failed; the rest of the
    batch is still attempted.
    """
    broadcaster = broadcaster or RealtimeBroadcaster()
    limit = batch_size or settings.REALTIME["BATCH_SIZE"]

    published = failed = 0
    for event in OutboxEvent.objects.publishable(OUTBOX_MAX_RETRIES)[:limit]:
        try:
            broadcaster.broadcast(event.as_message())
        except BroadcastError as exc:
            event.mark_as_failed(str(exc))
            failed += 1
            continue
        event.mark_as_published()
        published += 1

    if published or failed:
        logger.info("outbox.batch_processed", published=published, failed=failed)
    return {"published": published, "failed": failed}


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events() -> dict[str, int]:
    return publish_pending_events()
