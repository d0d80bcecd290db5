from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.models import Profile, Role
from modules.errands.models import ErrandCategory, ErrandSubcategory
from modules.stores.models import Product, Store, StoreCategory


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        stores, products = self._seed_stores()
        categories, subcategories = self._seed_errand_catalogue()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"stores={stores}, "
                f"products={products}, "
                f"errand_categories={categories}, "
                f"errand_subcategories={subcategories}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        accounts = [
            ("admin", "admin123", Role.ADMIN, "Admin User", "592-600-0001"),
            ("driver", "driver123", Role.DRIVER, "Devon Persaud", "592-600-0002"),
            ("customer", "customer123", Role.CUSTOMER, "Keisha Williams", "592-600-0003"),
        ]
        for username, password, role, full_name, phone in accounts:
            user = User.objects.filter(username=username).first()
            if user is None:
                if role == Role.ADMIN:
                    user = User.objects.create_superuser(username, password=password)
                else:
                    user = User.objects.create_user(username, password=password)
                created += 1
            Profile.objects.get_or_create(
                user=user,
                defaults={
                    "full_name": full_name,
                    "phone": phone,
                    "role": role,
                    "delivery_address": "Lot 12 Main Street, Georgetown",
                    "latitude": 6.8045,
                    "longitude": -58.1553,
                },
            )
        return created

    def _seed_stores(self) -> tuple[int, int]:
        self.stdout.write("Creating stores...")
        catalog = {
            ("Demerara Kitchen", StoreCategory.RESTAURANT, 6.8090, -58.1600): [
                ("Chicken Curry", "Mains", Decimal("1800.00")),
                ("Cook-up Rice", "Mains", Decimal("1500.00")),
                ("Pepperpot", "Mains", Decimal("2200.00")),
                ("Fried Rice", "Mains", Decimal("1200.00")),
                ("Mauby", "Drinks", Decimal("400.00")),
                ("Coca Cola", "Drinks", Decimal("300.00")),
            ],
            ("Bourda Fresh Market", StoreCategory.GROCERY, 6.8131, -58.1497): [
                ("Whole Chicken", "Meat", Decimal("2500.00")),
                ("Fresh Milk 1L", "Dairy", Decimal("650.00")),
                ("Cheddar Cheese", "Dairy", Decimal("1100.00")),
                ("Sliced Bread", "Bakery", Decimal("450.00")),
                ("Bananas", "Produce", Decimal("300.00")),
                ("Tomatoes", "Produce", Decimal("350.00")),
                ("Basmati Rice 2kg", "Pantry", Decimal("900.00")),
            ],
            ("Regent Pharmacy", StoreCategory.PHARMACY, 6.8110, -58.1580): [
                ("Paracetamol Tablets", "Medicine", Decimal("500.00")),
                ("Vitamin C", "Supplements", Decimal("1200.00")),
                ("Toothpaste", "Personal Care", Decimal("450.00")),
                ("Hand Soap", "Personal Care", Decimal("300.00")),
            ],
        }

        stores = products = 0
        for (name, category, lat, lng), items in catalog.items():
            store, created = Store.objects.get_or_create(
                name=name,
                defaults={
                    "category": category,
                    "address": f"{name}, Georgetown",
                    "city": "Georgetown",
                    "latitude": lat,
                    "longitude": lng,
                    "is_open": True,
                },
            )
            stores += int(created)
            for product_name, product_category, price in items:
                _, created = Product.objects.get_or_create(
                    store=store,
                    name=product_name,
                    defaults={
                        "category": product_category,
                        "price": price,
                        "is_available": random.random() > 0.1,
                    },
                )
                products += int(created)
        self.stdout.write(self.style.SUCCESS("Creating stores... Done!"))
        return stores, products

    def _seed_errand_catalogue(self) -> tuple[int, int]:
        self.stdout.write("Creating errand catalogue...")
        catalogue = [
            ("Shopping", "🛍️", [("Grocery Shopping", None), ("Gift Shopping", None)]),
            (
                "Medical",
                "💊",
                [("Prescription Pickup", Decimal("1500.00")), ("Lab Results", None)],
            ),
            (
                "Government & Documents",
                "📄",
                [("Document Drop-off", None), ("Bill Payment", Decimal("1000.00"))],
            ),
            ("Delivery", "📦", [("Package Pickup", None), ("Courier", None)]),
        ]

        categories = subcategories = 0
        for order, (name, icon, children) in enumerate(catalogue):
            category, created = ErrandCategory.objects.get_or_create(
                name=name, defaults={"icon": icon, "display_order": order}
            )
            categories += int(created)
            for child_order, (child_name, base_price) in enumerate(children):
                _, created = ErrandSubcategory.objects.get_or_create(
                    category=category,
                    name=child_name,
                    defaults={"base_price": base_price, "display_order": child_order},
                )
                subcategories += int(created)
        self.stdout.write(self.style.SUCCESS("Creating errand catalogue... Done!"))
        return categories, subcategories
