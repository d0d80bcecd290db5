"""Contact details shown on order and errand screens.

The same person can be described by several optional sources (their
profile, the joined user record, raw fields captured on the order).  Each
resolver below applies a fixed precedence: the first non-empty value wins.

    phone    profile.phone -> user.phone -> order.customer_phone
    name     profile.full_name -> user full name -> "Unknown"
    address  order.delivery_address -> profile.delivery_address
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from modules.accounts.models import get_profile

UNKNOWN_NAME = "Unknown"
DEFAULT_FIRST_NAME = "User"
DEFAULT_INITIALS = "U"


def first_non_empty(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


@dataclass(frozen=True)
class CustomerContact:
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None

    @property
    def first_name(self) -> str:
        return get_first_name(self.name)

    @property
    def initials(self) -> str:
        return get_initials(self.name)


def _user_full_name(user: Any) -> Optional[str]:
    if user is None:
        return None
    full_name = user.get_full_name() if hasattr(user, "get_full_name") else ""
    return first_non_empty(full_name, getattr(user, "name", None))


def _resolve(user: Any, raw_phone: Optional[str], address: Optional[str]) -> CustomerContact:
    profile = get_profile(user)
    return CustomerContact(
        name=first_non_empty(
            profile.full_name if profile else None,
            _user_full_name(user),
        )
        or UNKNOWN_NAME,
        phone=first_non_empty(
            profile.phone if profile else None,
            getattr(user, "phone", None),
            raw_phone,
        ),
        address=first_non_empty(
            address,
            profile.delivery_address if profile else None,
        ),
    )


def resolve_order_contact(order: Any) -> CustomerContact:
    return _resolve(
        order.customer,
        getattr(order, "customer_phone", None),
        getattr(order, "delivery_address", None),
    )


def resolve_errand_contact(errand: Any) -> CustomerContact:
    """Errands are delivered to the drop-off address."""
    return _resolve(
        errand.customer,
        getattr(errand, "customer_phone", None),
        getattr(errand, "dropoff_address", None),
    )


def resolve_assignee_name(user: Any) -> Optional[str]:
    """Display name of a driver/runner, ``None`` when unassigned."""
    if user is None:
        return None
    profile = get_profile(user)
    return (
        first_non_empty(profile.full_name if profile else None, _user_full_name(user))
        or UNKNOWN_NAME
    )


def get_first_name(full_name: Optional[str]) -> str:
    name = first_non_empty(full_name)
    if not name:
        return DEFAULT_FIRST_NAME
    return name.split()[0]


def get_initials(full_name: Optional[str]) -> str:
    name = first_non_empty(full_name)
    if not name:
        return DEFAULT_INITIALS
    return "".join(part[0] for part in name.split()[:2]).upper()
