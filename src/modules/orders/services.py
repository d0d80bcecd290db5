"""Order service layer (Use Cases).

Orchestrates order creation and the delivery lifecycle.  All write
operations are atomic; the service defines the unit-of-work boundary.

Rules enforced here:
- Status changes go through ``ORDER_FLOW`` (linear chain + reject edge).
- Accept only while ``pending`` and unassigned; it does not move status.
- Advance only by the assigned driver, or by anyone while unassigned.
- Reaching the end of the chain is informational, never an error.
- Every status change stamps its timestamp, appends history and emits an
  event to the outbox for realtime subscribers.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import (
    FINAL_STATUS_MESSAGE,
    ORDER_FLOW,
    OrderStatus,
)
from modules.orders.dtos import TransitionResultDTO
from modules.orders.events import (
    OrderAssigned,
    OrderCancelled,
    OrderCreated,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    InvalidOrderStatus,
    NotAssignedActor,
    OrderAlreadyAssigned,
    OrderNotFound,
    OutsideServiceArea,
)
from modules.pricing.calculator import PricingConfig, calculate_delivery_fee, get_pricing_config
from modules.pricing.currency import freeze_price
from modules.pricing.distance import check_service_area, haversine_km
from modules.stores.exceptions import StoreClosed
from modules.stores.services import StoreService
from shared.domain.lifecycle import InvalidTransition, Transition, TransitionOutcome
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.stores.repositories.interfaces import IStoreRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        store_repository: IStoreRepository,
        event_bus: Optional[IEventBus] = None,
        pricing_config: Optional[PricingConfig] = None,
    ) -> None:
        self._order_repo = order_repository
        self._stores = StoreService(store_repository)
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
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create a pending order with snapshotted prices and computed fees.

        Raises:
            StoreNotFound / StoreClosed: the store cannot take orders.
            ProductNotFound / ProductUnavailable: a line cannot be sold.
            OutsideServiceArea: delivery point is outside every zone.
        """
        log = logger.bind(customer_id=str(dto.customer_id), store_id=str(dto.store_id))
        log.info("order.creation_started")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        store = self._stores.get_store(str(dto.store_id))
        if not store.is_open:
            raise StoreClosed(f"Store {store.name} is closed.")

        products = self._stores.resolve_products(
            str(dto.store_id), [item.product_id for item in dto.items]
        )

        distance_km: Optional[float] = None
        if dto.has_coordinates:
            if self.pricing.enforce_service_area:
                zone = check_service_area(dto.latitude, dto.longitude)
                if not zone.allowed:
                    log.warning("order.outside_service_area")
                    raise OutsideServiceArea(zone.message)
            store_lat, store_lng = store.location
            distance_km = haversine_km(store_lat, store_lng, dto.latitude, dto.longitude)

        lines: List[Dict[str, Any]] = []
        items_total = Decimal("0.00")
        for item in dto.items:
            product = products[str(item.product_id)]
            price = freeze_price(product.price)
            items_total += price * item.quantity
            lines.append(
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "product_price": price,
                    "quantity": item.quantity,
                }
            )

        service_fee = self.pricing.service_fee
        delivery_fee = calculate_delivery_fee(
            None if distance_km is None else Decimal(repr(distance_km)),
            self.pricing,
        )
        subtotal = items_total + service_fee
        tax = Decimal("0.00")
        discount = Decimal("0.00")  # no promotions or coupons at checkout
        total = subtotal + delivery_fee + tax - discount

        order = self._order_repo.create(
            {
                "customer_id": dto.customer_id,
                "store_id": store.id,
                "items": lines,
                "subtotal": subtotal,
                "service_fee": service_fee,
                "delivery_fee": delivery_fee,
                "tax": tax,
                "discount": discount,
                "total": total,
                "currency": self.pricing.currency,
                "payment_method": dto.payment_method,
                "delivery_address": dto.delivery_address,
                "city": dto.city,
                "latitude": dto.latitude,
                "longitude": dto.longitude,
                "delivery_notes": dto.delivery_notes,
                "customer_phone": dto.customer_phone,
                "idempotency_key": dto.idempotency_key,
            }
        )

        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                order_number=order.order_number,
                total=str(order.total),
            )
        )
        self._persist(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order created",
            user_id=dto.customer_id,
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            total=str(total),
            delivery_fee=str(delivery_fee),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def accept(self, order_id: UUID, actor_id: Any) -> Order:
        """Assign *actor_id* as the driver without changing the status.

        Raises:
            OrderNotFound: order does not exist.
            OrderAlreadyAssigned: order is not pending or already has a driver.
        """
        order = self._lock(order_id)
        log = logger.bind(order_id=str(order_id), status=order.status, actor_id=str(actor_id))

        if not ORDER_FLOW.can_accept(order.status, order.driver_id):
            log.warning("order.accept_rejected", driver_id=str(order.driver_id))
            raise OrderAlreadyAssigned(
                f"Order {order.order_number} is not available for acceptance."
            )

        order.driver_id = actor_id
        order.assigned_at = timezone.now()
        order.add_domain_event(OrderAssigned(aggregate_id=order.id, driver_id=str(actor_id)))
        self._persist(order, update_fields=["driver", "assigned_at"])

        log.info("order.accepted")
        return self._reload(order)

    @transaction.atomic
    def confirm(self, order_id: UUID, actor_id: Any = None) -> TransitionResultDTO:
        """Move ``pending -> confirmed`` (admin action, off the chain)."""
        order = self._lock(order_id)
        if order.status != OrderStatus.PENDING:
            raise InvalidOrderStatus(f"Cannot confirm order in status {order.status}.")
        transition = Transition(
            str(order.status), OrderStatus.CONFIRMED.value, TransitionOutcome.CONFIRMED
        )
        return self._apply(order, transition, actor_id, notes="Order confirmed")

    @transaction.atomic
    def reject(
        self, order_id: UUID, actor_id: Any = None, reason: str = ""
    ) -> TransitionResultDTO:
        """Cancel from ``pending``, ``confirmed`` or ``accepted``.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: order is past the point of rejection.
        """
        order = self._lock(order_id)
        try:
            transition = ORDER_FLOW.reject(order.status)
        except InvalidTransition as exc:
            logger.warning("order.reject_not_allowed", order_id=str(order_id), status=order.status)
            raise InvalidOrderStatus(str(exc)) from exc

        order.cancellation_reason = reason
        return self._apply(
            order,
            transition,
            actor_id,
            notes=reason or "Order rejected",
            extra_fields=["cancellation_reason"],
        )

    @transaction.atomic
    def advance_status(self, order_id: UUID, actor_id: Any) -> TransitionResultDTO:
        """Move one step along the chain.

        Raises:
            OrderNotFound: order does not exist.
            NotAssignedActor: another driver holds the order.
        """
        order = self._lock(order_id)
        if order.driver_id is not None and str(order.driver_id) != str(actor_id):
            logger.warning(
                "order.advance_forbidden",
                order_id=str(order_id),
                driver_id=str(order.driver_id),
                actor_id=str(actor_id),
            )
            raise NotAssignedActor("Only the assigned driver can update this order.")

        transition = ORDER_FLOW.advance(order.status)
        if not transition.changed:
            logger.info("order.already_final", order_id=str(order_id), status=order.status)
            return TransitionResultDTO(
                order=order,
                previous_status=transition.previous,
                status=transition.current,
                outcome=transition.outcome.value,
                changed=False,
                message=FINAL_STATUS_MESSAGE,
            )
        return self._apply(order, transition, actor_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Raises ``OrderNotFound``."""
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None):
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, order_id: UUID) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _reload(self, order: Order) -> Order:
        return self._order_repo.get_by_id(str(order.id)) or order

    def _apply(
        self,
        order: Order,
        transition: Transition,
        actor_id: Any,
        notes: str = "",
        extra_fields: Optional[List[str]] = None,
    ) -> TransitionResultDTO:
        order.status = transition.current
        fields = ["status", *(extra_fields or [])]
        stamped = order.stamp_status(transition.current)
        if stamped:
            fields.append(stamped)

        common = {
            "aggregate_id": order.id,
            "old_status": transition.previous,
            "new_status": transition.current,
            "actor_id": "" if actor_id is None else str(actor_id),
        }
        if transition.outcome == TransitionOutcome.REJECTED:
            event = OrderCancelled(reason=order.cancellation_reason, **common)
        else:
            event = OrderStatusChanged(**common)
        order.add_domain_event(event)

        self._persist(order, update_fields=fields)
        self._order_repo.add_history(
            order_id=order.id,
            status=transition.current,
            notes=notes,
            old_status=transition.previous,
            user_id=actor_id,
        )

        logger.info(
            "order.status_updated",
            order_id=str(order.id),
            old_status=transition.previous,
            new_status=transition.current,
            outcome=str(transition.outcome),
        )
        return TransitionResultDTO(
            order=self._reload(order),
            previous_status=transition.previous,
            status=transition.current,
            outcome=transition.outcome.value,
            changed=True,
        )

    def _persist(self, order: Order, update_fields: Optional[List[str]] = None) -> None:
        events = order.domain_events
        self._order_repo.save(order, update_fields=update_fields)
        if events:
            transaction.on_commit(lambda: self._event_bus.publish_all(events))

