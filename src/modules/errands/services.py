"""Errand service layer (Use Cases).

Same shape as the order service: row lock, lifecycle lookup in
``ERRAND_FLOW``, timestamp + audit row + outbox event per change.

Pricing: the errand is quoted with the fee calculator and, while the flat
price is enabled, persisted at the flat price instead (see
``modules.pricing.calculator.quote_errand``).
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.errands.constants import ERRAND_FLOW, FINAL_STATUS_MESSAGE, ErrandStatus
from modules.errands.dtos import ErrandTransitionResultDTO
from modules.errands.events import (
    ErrandAssigned,
    ErrandCancelled,
    ErrandCreated,
    ErrandStatusChanged,
)
from modules.errands.exceptions import (
    CategoryNotFound,
    ErrandAlreadyAssigned,
    ErrandNotFound,
    InvalidErrandStatus,
    InvalidSchedule,
    NotAssignedRunner,
    OutsideServiceArea,
    SubcategoryNotFound,
)
from modules.pricing.calculator import PricingConfig, get_pricing_config, quote_errand
from modules.pricing.distance import check_service_area, haversine_km
from shared.domain.lifecycle import InvalidTransition, Transition, TransitionOutcome
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.errands.dtos import CreateErrandDTO
    from modules.errands.models import Errand
    from modules.errands.repositories.interfaces import IErrandRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class ErrandService:
    def __init__(
        self,
        errand_repository: IErrandRepository,
        event_bus: Optional[IEventBus] = None,
        pricing_config: Optional[PricingConfig] = None,
    ) -> None:
        self._repo = errand_repository
        self._event_bus = event_bus or default_event_bus
        self._pricing = pricing_config

    @property
    def pricing(self) -> PricingConfig:
        if self._pricing is None:
            self._pricing = get_pricing_config()
        return self._pricing

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_errand(self, dto: CreateErrandDTO) -> Errand:
        """Create a pending errand priced from its route and complexity.

        Raises:
            CategoryNotFound / SubcategoryNotFound: unknown catalogue entry.
            InvalidSchedule: scheduled time is in the past.
            OutsideServiceArea: drop-off is outside every zone.
        """
        log = logger.bind(customer_id=str(dto.customer_id), category_id=str(dto.category_id))

        category = self._repo.get_category(str(dto.category_id))
        if not category:
            raise CategoryNotFound(f"Category {dto.category_id} not found.")

        subcategory = None
        if dto.subcategory_id:
            subcategory = self._repo.get_subcategory(str(dto.subcategory_id))
            if not subcategory or subcategory.category_id != category.id:
                raise SubcategoryNotFound(
                    f"Subcategory {dto.subcategory_id} not found in {category.name}."
                )

        if dto.scheduled_time is not None and dto.scheduled_time <= timezone.now():
            raise InvalidSchedule("Scheduled time must be in the future.")

        if (
            self.pricing.enforce_service_area
            and dto.dropoff_latitude is not None
            and dto.dropoff_longitude is not None
        ):
            zone = check_service_area(dto.dropoff_latitude, dto.dropoff_longitude)
            if not zone.allowed:
                log.warning("errand.outside_service_area")
                raise OutsideServiceArea(zone.message)

        distance_km: Optional[Decimal] = None
        if dto.has_route:
            km = haversine_km(
                dto.pickup_latitude,
                dto.pickup_longitude,
                dto.dropoff_latitude,
                dto.dropoff_longitude,
            )
            distance_km = Decimal(repr(round(km, 3)))

        base_amount = subcategory.base_price if subcategory and subcategory.base_price else None
        quote = quote_errand(
            distance_km or Decimal("0"),
            dto.complexity,
            base_amount=base_amount,
            config=self.pricing,
        )

        errand = self._repo.create(
            {
                "customer_id": dto.customer_id,
                "category_id": category.id,
                "subcategory_id": subcategory.id if subcategory else None,
                "pickup_address": dto.pickup_address,
                "pickup_latitude": dto.pickup_latitude,
                "pickup_longitude": dto.pickup_longitude,
                "dropoff_address": dto.dropoff_address,
                "dropoff_latitude": dto.dropoff_latitude,
                "dropoff_longitude": dto.dropoff_longitude,
                "city": dto.city,
                "customer_phone": dto.customer_phone,
                "instructions": dto.instructions,
                "notes": dto.notes,
                "custom_description": dto.custom_description,
                "is_asap": dto.is_asap,
                "scheduled_time": dto.scheduled_time,
                "distance_km": distance_km,
                "complexity": str(dto.complexity),
                "base_price": quote.base_price,
                "distance_fee": quote.distance_fee,
                "complexity_fee": quote.complexity_fee,
                "total_price": quote.total_price,
                "currency": self.pricing.currency,
                "payment_method": dto.payment_method,
            }
        )
        errand.add_domain_event(
            ErrandCreated(
                aggregate_id=errand.id,
                errand_number=errand.errand_number,
                total_price=str(errand.total_price),
            )
        )
        self._persist(errand)
        self._repo.add_status_update(
            errand_id=errand.id,
            status=ErrandStatus.PENDING,
            notes="Errand created",
            user_id=dto.customer_id,
        )
        log.info(
            "errand.created",
            errand_id=str(errand.id),
            total_price=str(quote.total_price),
            flat_price_applied=quote.flat_price_applied,
        )
        return self._repo.get_by_id(str(errand.id)) or errand

    @transaction.atomic
    def accept(self, errand_id: UUID, actor_id: Any) -> Errand:
        """Assign *actor_id* as the runner; the status stays ``pending``."""
        errand = self._lock(errand_id)
        if not ERRAND_FLOW.can_accept(errand.status, errand.runner_id):
            logger.warning(
                "errand.accept_rejected",
                errand_id=str(errand_id),
                status=errand.status,
                runner_id=str(errand.runner_id),
            )
            raise ErrandAlreadyAssigned(
                f"Errand {errand.errand_number} is not available for acceptance."
            )

        errand.runner_id = actor_id
        errand.assigned_at = timezone.now()
        errand.add_domain_event(ErrandAssigned(aggregate_id=errand.id, runner_id=str(actor_id)))
        self._persist(errand, update_fields=["runner", "assigned_at"])
        logger.info("errand.accepted", errand_id=str(errand_id), runner_id=str(actor_id))
        return self._repo.get_by_id(str(errand.id)) or errand

    @transaction.atomic
    def reject(
        self, errand_id: UUID, actor_id: Any = None, reason: str = ""
    ) -> ErrandTransitionResultDTO:
        """Cancel from ``pending`` or ``accepted``."""
        errand = self._lock(errand_id)
        try:
            transition = ERRAND_FLOW.reject(errand.status)
        except InvalidTransition as exc:
            logger.warning("errand.reject_not_allowed", errand_id=str(errand_id), status=errand.status)
            raise InvalidErrandStatus(str(exc)) from exc

        errand.cancellation_reason = reason
        return self._apply(
            errand,
            transition,
            actor_id,
            notes=reason or "Errand rejected",
            extra_fields=["cancellation_reason"],
        )

    @transaction.atomic
    def advance_status(self, errand_id: UUID, actor_id: Any) -> ErrandTransitionResultDTO:
        errand = self._lock(errand_id)
        if errand.runner_id is not None and str(errand.runner_id) != str(actor_id):
            logger.warning(
                "errand.advance_forbidden",
                errand_id=str(errand_id),
                runner_id=str(errand.runner_id),
                actor_id=str(actor_id),
            )
            raise NotAssignedRunner("Only the assigned runner can update this errand.")

        transition = ERRAND_FLOW.advance(errand.status)
        if not transition.changed:
            logger.info("errand.already_final", errand_id=str(errand_id), status=errand.status)
            return ErrandTransitionResultDTO(
                errand=errand,
                previous_status=transition.previous,
                status=transition.current,
                outcome=transition.outcome.value,
                changed=False,
                message=FINAL_STATUS_MESSAGE,
            )
        return self._apply(errand, transition, actor_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_errand(self, errand_id: str) -> Errand:
        errand = self._repo.get_by_id(errand_id)
        if not errand:
            raise ErrandNotFound(f"Errand {errand_id} not found.")
        return errand

    def list_errands(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list(filters)

    def list_categories(self):
        return self._repo.list_categories()

    def list_subcategories(self, category_id: str):
        if not self._repo.get_category(category_id):
            raise CategoryNotFound(f"Category {category_id} not found.")
        return self._repo.list_subcategories(category_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, errand_id: UUID) -> Errand:
        errand = self._repo.get_for_update(str(errand_id))
        if not errand:
            raise ErrandNotFound(f"Errand {errand_id} not found.")
        return errand

    def _apply(
        self,
        errand: Errand,
        transition: Transition,
        actor_id: Any,
        notes: str = "",
        extra_fields: Optional[List[str]] = None,
    ) -> ErrandTransitionResultDTO:
        errand.status = transition.current
        fields = ["status", *(extra_fields or [])]
        stamped = errand.stamp_status(transition.current)
        if stamped:
            fields.append(stamped)

        common = {
            "aggregate_id": errand.id,
            "old_status": transition.previous,
            "new_status": transition.current,
            "actor_id": "" if actor_id is None else str(actor_id),
        }
        if transition.outcome == TransitionOutcome.REJECTED:
            event = ErrandCancelled(reason=errand.cancellation_reason, **common)
        else:
            event = ErrandStatusChanged(**common)
        errand.add_domain_event(event)

        self._persist(errand, update_fields=fields)
        self._repo.add_status_update(
            errand_id=errand.id,
            status=transition.current,
            notes=notes,
            old_status=transition.previous,
            user_id=actor_id,
        )
        logger.info(
            "errand.status_updated",
            errand_id=str(errand.id),
            old_status=transition.previous,
            new_status=transition.current,
        )
        return ErrandTransitionResultDTO(
            errand=self._repo.get_by_id(str(errand.id)) or errand,
            previous_status=transition.previous,
            status=transition.current,
            outcome=transition.outcome.value,
            changed=True,
        )

    def _persist(self, errand: Errand, update_fields: Optional[List[str]] = None) -> None:
        events = errand.domain_events
        self._repo.save(errand, update_fields=update_fields)
        if events:
            transaction.on_commit(lambda: self._event_bus.publish_all(events))
