"""Unit tests for the receipt item categorizer.

Covers:
- Keyword rules and their order (narrow rules before broad ones).
- Grouping keeps first-seen order and every item exactly once.
- Section sort order.
"""

from __future__ import annotations

import pytest

from modules.receipts.categorizer import (
    CATEGORY_PRIORITY,
    OTHER_ITEMS,
    CategoryRule,
    categorize,
    categorize_item_name,
    sort_categories,
)

pytestmark = pytest.mark.unit


class TestCategorizeItemName:
    @pytest.mark.parametrize(
        "name,label",
        [
            ("Personal Pan Pizza Pepperoni", "Personal Pan Pizzas"),
            ("Pepperoni Lovers Pizza", "Specialty Pizzas"),
            ("Chicken Alfredo", "Pastas"),
            ("Hot Wings 6pc", "Chicken Wings"),
            ("Garlic Bread", "Breadsticks & Sides"),
            ("Coca Cola 2L", "Beverages"),
            ("8 pc Chicken Bucket", "Family Meals & Buckets"),
            ("Zinger Burger", "Sandwiches & Burgers"),
            ("Chicken Fried Rice", "Fried Rice"),
            ("Beef Lowmein", "Chowmein & Lowmein"),
            ("Whole Chicken", "Chicken Items"),
            ("Mauby", OTHER_ITEMS),
            ("", OTHER_ITEMS),
        ],
    )
    def test_rules(self, name, label):
        assert categorize_item_name(name) == label

    def test_matching_is_case_insensitive(self):
        assert categorize_item_name("CAESAR SALAD") == "Salads"

    def test_custom_rules(self):
        rules = (CategoryRule("Drinks", lambda n: "mauby" in n),)
        assert categorize_item_name("Mauby", rules) == "Drinks"
        assert categorize_item_name("Curry", rules) == OTHER_ITEMS


class TestCategorize:
    def test_groups_in_first_seen_order(self):
        items = [
            {"name": "Coca Cola"},
            {"name": "Zinger Burger"},
            {"name": "Sprite"},
            {"name": "Mauby"},
        ]
        groups = categorize(items)
        assert list(groups) == ["Beverages", "Sandwiches & Burgers", OTHER_ITEMS]
        assert groups["Beverages"] == [{"name": "Coca Cola"}, {"name": "Sprite"}]

    def test_every_item_lands_in_one_group(self):
        items = [{"name": name} for name in ("Wings", "Brownie", "Tea", "Chicken Curry", "Box")]
        groups = categorize(items)
        assert sum(len(group) for group in groups.values()) == len(items)

    def test_custom_name_accessor(self):
        groups = categorize(["Garden Salad"], name_of=lambda item: item)
        assert groups == {"Salads": ["Garden Salad"]}


class TestSortCategories:
    def test_priority_then_alphabetical(self):
        labels = [OTHER_ITEMS, "Beverages", "Zebra Specials", "Specialty Pizzas", "Aardvark"]
        assert sort_categories(labels) == [
            "Specialty Pizzas",
            "Beverages",
            OTHER_ITEMS,
            "Aardvark",
            "Zebra Specials",
        ]

    def test_other_items_is_last_known_label(self):
        assert CATEGORY_PRIORITY[-1] == OTHER_ITEMS
