"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist or has been soft-deleted."""


class InvalidOrderStatus(Exception):
    """The requested transition is not allowed from the current status."""


class OrderAlreadyAssigned(Exception):
    """Accept was attempted on an order that is not open for assignment."""


class NotAssignedActor(Exception):
    """Only the assigned driver (or anyone while unassigned) may advance."""


class OutsideServiceArea(Exception):
    """The delivery coordinates fall outside every service zone."""
