"""Store and Product models.

Stores are the pickup side of a delivery order.  Products are only read by
the order service, which snapshots name and price onto each order line so
later catalogue edits never alter an existing order.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

# Central Georgetown; used as the delivery-fee origin for stores without coordinates.
DEFAULT_STORE_LOCATION = (6.8013, -58.1551)


class StoreCategory(models.TextChoices):
    RESTAURANT = "restaurant", "Restaurant"
    GROCERY = "grocery", "Grocery"
    PHARMACY = "pharmacy", "Pharmacy"
    RETAIL = "retail", "Retail"


class Store(SoftDeleteModel):
    name = models.CharField(max_length=255)
    category = models.CharField(
        max_length=20,
        choices=StoreCategory.choices,
        default=StoreCategory.RESTAURANT,
    )
    description = models.TextField(blank=True, default="")
    address = models.TextField(blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="Georgetown")
    phone = models.CharField(max_length=20, blank=True, default="")
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    is_open = models.BooleanField(default=True)

    class Meta:
        db_table = "stores"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="stores_category_idx"),
        ]

    @property
    def location(self) -> tuple[float, float]:
        if self.latitude is None or self.longitude is None:
            return DEFAULT_STORE_LOCATION
        return (self.latitude, self.longitude)

    def __str__(self) -> str:
        return self.name


class Product(SoftDeleteModel):
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="products",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["store", "is_available"], name="products_store_avail_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_not_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} @ {self.store_id}"
