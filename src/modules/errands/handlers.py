"""Event handlers for errand domain events."""

from __future__ import annotations

import structlog

from modules.errands.events import ErrandAssigned, ErrandCancelled, ErrandCreated, ErrandStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class ErrandCreatedHandler(IEventHandler[ErrandCreated]):
    def handle(self, event: ErrandCreated) -> None:
        logger.info(
            "errand.event.created",
            errand_id=str(event.aggregate_id),
            errand_number=event.errand_number,
            total_price=event.total_price,
        )


class ErrandAssignedHandler(IEventHandler[ErrandAssigned]):
    def handle(self, event: ErrandAssigned) -> None:
        logger.info("errand.event.assigned", errand_id=str(event.aggregate_id), runner_id=event.runner_id)


class ErrandStatusChangedHandler(IEventHandler[ErrandStatusChanged]):
    def handle(self, event: ErrandStatusChanged) -> None:
        logger.info(
            "errand.event.status_changed",
            errand_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
            actor_id=event.actor_id,
        )


class ErrandCancelledHandler(IEventHandler[ErrandCancelled]):
    def handle(self, event: ErrandCancelled) -> None:
        logger.info(
            "errand.event.cancelled",
            errand_id=str(event.aggregate_id),
            old_status=event.old_status,
            reason=event.reason,
        )


errand_created_handler = ErrandCreatedHandler()
errand_assigned_handler = ErrandAssignedHandler()
errand_status_changed_handler = ErrandStatusChangedHandler()
errand_cancelled_handler = ErrandCancelledHandler()
