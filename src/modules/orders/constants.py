"""Order domain constants.

Status choices, the delivery lifecycle and the timestamp stamped on each
transition.  ``confirmed`` is reachable only through the explicit confirm
action and has no successor on the chain.
"""

from types import MappingProxyType

from django.db import models

from shared.domain.lifecycle import StatusFlow


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    ACCEPTED = "accepted", "Accepted"
    PURCHASING = "purchasing", "Purchasing Items"
    PREPARING = "preparing", "Preparing"
    READY_FOR_PICKUP = "ready_for_pickup", "Ready for Pickup"
    PICKED_UP = "picked_up", "Picked Up"
    IN_TRANSIT = "in_transit", "Out for Delivery"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


ORDER_STATUS_ICONS = MappingProxyType(
    {
        OrderStatus.PENDING: "⏳",
        OrderStatus.CONFIRMED: "✅",
        OrderStatus.ACCEPTED: "👍",
        OrderStatus.PURCHASING: "🛒",
        OrderStatus.PREPARING: "👨‍🍳",
        OrderStatus.READY_FOR_PICKUP: "📦",
        OrderStatus.PICKED_UP: "🚗",
        OrderStatus.IN_TRANSIT: "🚚",
        OrderStatus.DELIVERED: "✓",
        OrderStatus.CANCELLED: "❌",
    }
)

ORDER_FLOW = StatusFlow(
    [
        OrderStatus.PENDING,
        OrderStatus.ACCEPTED,
        OrderStatus.PURCHASING,
        OrderStatus.PREPARING,
        OrderStatus.READY_FOR_PICKUP,
        OrderStatus.PICKED_UP,
        OrderStatus.IN_TRANSIT,
        OrderStatus.DELIVERED,
    ],
    cancelled=OrderStatus.CANCELLED,
    rejectable={OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.ACCEPTED},
    labels=dict(OrderStatus.choices),
    icons=ORDER_STATUS_ICONS,
)

STATUS_TIMESTAMP_FIELDS = MappingProxyType(
    {
        OrderStatus.CONFIRMED: "confirmed_at",
        OrderStatus.ACCEPTED: "accepted_at",
        OrderStatus.PURCHASING: "purchasing_at",
        OrderStatus.PREPARING: "preparing_at",
        OrderStatus.READY_FOR_PICKUP: "ready_at",
        OrderStatus.PICKED_UP: "picked_up_at",
        OrderStatus.IN_TRANSIT: "in_transit_at",
        OrderStatus.DELIVERED: "delivered_at",
        OrderStatus.CANCELLED: "cancelled_at",
    }
)


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    CARD = "card", "Card"
    MOBILE_MONEY = "mobile_money", "MMG+"
    BANK_TRANSFER = "bank_transfer", "Bank Transfer"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


FINAL_STATUS_MESSAGE = "Order is already at final status"
