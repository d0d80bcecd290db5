"""Errand domain constants.

Errands have no confirm step: acceptance by a runner is the only
assignment action, and the chain starts moving once the runner advances.
"""

from types import MappingProxyType

from django.db import models

from shared.domain.lifecycle import StatusFlow


class ErrandStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    AT_PICKUP = "at_pickup", "At Pickup"
    PICKUP_COMPLETE = "pickup_complete", "Pickup Complete"
    EN_ROUTE = "en_route", "En Route"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


ERRAND_STATUS_ICONS = MappingProxyType(
    {
        ErrandStatus.PENDING: "⏳",
        ErrandStatus.ACCEPTED: "✅",
        ErrandStatus.AT_PICKUP: "📍",
        ErrandStatus.PICKUP_COMPLETE: "📦",
        ErrandStatus.EN_ROUTE: "🚗",
        ErrandStatus.COMPLETED: "✓",
        ErrandStatus.CANCELLED: "❌",
    }
)

ERRAND_FLOW = StatusFlow(
    [
        ErrandStatus.PENDING,
        ErrandStatus.ACCEPTED,
        ErrandStatus.AT_PICKUP,
        ErrandStatus.PICKUP_COMPLETE,
        ErrandStatus.EN_ROUTE,
        ErrandStatus.COMPLETED,
    ],
    cancelled=ErrandStatus.CANCELLED,
    rejectable={ErrandStatus.PENDING, ErrandStatus.ACCEPTED},
    labels=dict(ErrandStatus.choices),
    icons=ERRAND_STATUS_ICONS,
)

STATUS_TIMESTAMP_FIELDS = MappingProxyType(
    {
        ErrandStatus.ACCEPTED: "accepted_at",
        ErrandStatus.AT_PICKUP: "at_pickup_at",
        ErrandStatus.PICKUP_COMPLETE: "pickup_complete_at",
        ErrandStatus.EN_ROUTE: "en_route_at",
        ErrandStatus.COMPLETED: "completed_at",
        ErrandStatus.CANCELLED: "cancelled_at",
    }
)

FINAL_STATUS_MESSAGE = "Errand is already at final status"
CUSTOM_ERRAND_LABEL = "Custom Errand"
