"""User profile for customers, drivers/runners and administrators.

Authentication stays on ``django.contrib.auth``; the profile carries the
marketplace data the apps display (full name, phone, default delivery
address) and the role used for admin-only actions.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Role(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    DRIVER = "driver", "Driver"
    ADMIN = "admin", "Admin"


class Profile(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    full_name = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=20, blank=True, default="")
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.CUSTOMER,
    )
    delivery_address = models.TextField(blank=True, default="")
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    class Meta:
        db_table = "profiles"
        indexes = [
            models.Index(fields=["role"], name="profiles_role_idx"),
        ]

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def __str__(self) -> str:
        # phone numbers are masked in logs, keep them out of reprs too
        return f"{self.full_name or self.user_id} ({self.role})"


def get_profile(user) -> Profile | None:
    """Profile of *user* or ``None``; never raises for users without one."""
    if user is None:
        return None
    try:
        return user.profile
    except Profile.DoesNotExist:
        return None


def is_admin_user(user) -> bool:
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    if user.is_staff:
        return True
    profile = get_profile(user)
    return bool(profile and profile.is_admin)


def is_fulfiller(user) -> bool:
    """Drivers/runners and administrators may take and progress jobs."""
    if is_admin_user(user):
        return True
    profile = get_profile(user)
    return bool(profile and profile.role == Role.DRIVER)
