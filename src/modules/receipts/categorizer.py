"""Receipt line-item categorizer.

Item names are lower-cased and run through ``CATEGORY_RULES`` in order; the
first rule that matches wins and anything left over lands in
``OTHER_ITEMS``.  Rule order is significant: narrow rules ("personal pan
pizza") sit above the broad ones that would otherwise shadow them.

Section display order comes from ``CATEGORY_PRIORITY``; labels not in that
list follow alphabetically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, TypeVar

OTHER_ITEMS = "Other Items"

Item = TypeVar("Item")
Predicate = Callable[[str], bool]


def _any(*needles: str) -> Predicate:
    return lambda name: any(needle in name for needle in needles)


def _all(*needles: str) -> Predicate:
    return lambda name: all(needle in name for needle in needles)


@dataclass(frozen=True)
class CategoryRule:
    label: str
    matches: Predicate


_PIZZA_STYLES = (
    "lovers", "supreme", "hawaiian", "bbq", "pepperoni", "cheese",
    "meat", "vegetarian", "chicken", "ham", "sausage", "spicy",
)

CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule("Personal Pan Pizzas", _any("personal pan pizza")),
    CategoryRule(
        "Specialty Pizzas",
        lambda n: "pizza" in n and "personal" not in n and _any(*_PIZZA_STYLES)(n),
    ),
    CategoryRule(
        "Pastas",
        _any("alfredo", "penne", "spaghetti", "lasagna", "pasta", "mac n cheese"),
    ),
    CategoryRule("Chicken Wings", _any("wing")),
    CategoryRule(
        "Breadsticks & Sides",
        _any("breadstick", "cheesy bread", "garlic bread", "stuffed breadstick"),
    ),
    CategoryRule("Salads", _any("salad")),
    CategoryRule("Desserts", _any("brownie", "cookie", "cinnamon", "dessert")),
    CategoryRule(
        "Beverages",
        _any(
            "coca", "coke", "pepsi", "sprite", "7 up", "icee", "minute maid",
            "water", "drink", "soda", "juice", "beverage",
        ),
    ),
    CategoryRule(
        "Family Meals & Buckets",
        lambda n: _any("bucket", "family meal")(n) or _all("pc", "chicken")(n),
    ),
    CategoryRule("Combo Meals", _any("combo", "box meal", "meal")),
    CategoryRule("Sandwiches & Burgers", _any("sandwich", "burger", "zinger")),
    CategoryRule("Tenders & Nuggets", _any("tender", "nugget", "popcorn chicken", "strip")),
    CategoryRule("Sides", _any("fries", "coleslaw", "mashed potato", "corn", "side")),
    CategoryRule(
        "Chicken Pieces",
        lambda n: _all("pc", "chicken")(n) or _all("piece", "chicken")(n),
    ),
    CategoryRule("Biscuits & Rolls", _any("biscuit", "roll")),
    CategoryRule("Family Meals", _any("family meal", "box")),
    CategoryRule("Seafood", _any("shrimp")),
    CategoryRule("Fried Rice", _any("fried rice")),
    CategoryRule("Chowmein & Lowmein", _any("chowmein", "lowmein")),
    CategoryRule("Servings", _any("serving")),
    CategoryRule("Kids Meals", _any("kids meal")),
    CategoryRule(
        "Seafood",
        _any(
            "boil", "platter", "prawns", "salmon", "snapper", "lobster",
            "crab", "calamari", "octopus", "mussels", "crawfish",
        ),
    ),
    CategoryRule("Beef & Lamb", _any("lamb", "steak", "tomahawk", "bone")),
    CategoryRule("Pork", _any("ribs", "chops")),
    CategoryRule("Beverages", _any("milkshake")),
    CategoryRule(
        "Chinese Specialty",
        _any(
            "chinese specialty", "sizzling", "diced beef", "spare ribs",
            "spicy chicken", "spicy salt", "stuffed tofu", "green chilli",
            "steam fish", "alaska king crab",
        ),
    ),
    CategoryRule(
        "Seafood",
        _any(
            "squid", "mussel", "fish ball", "fish fillet", "fish in sizzling",
            "fish with black", "pinecone fish", "lemon fish", "steamed fish",
        ),
    ),
    CategoryRule(
        "Beef & Mutton",
        _any("mutton", "beef chop suey", "beef with", "beef in sizzling", "beef kebab"),
    ),
    CategoryRule(
        "Vegetable",
        _any("vegetable", "broccoli", "pak choy", "mushroom", "tofu", "eggplant", "bran curd"),
    ),
    CategoryRule("Pork", _any("pork", "lapchung", "steamed ribs")),
    CategoryRule("Rice Noodles", _any("rice noodle", "ho-fun", "singapore noodle")),
    CategoryRule("Noodle Soups", _any("noodle soup")),
    CategoryRule("Chicken Items", lambda n: "chicken" in n and "wing" not in n),
)

CATEGORY_PRIORITY: Tuple[str, ...] = (
    "Specialty Pizzas",
    "Personal Pan Pizzas",
    "Pastas",
    "Chicken Wings",
    "Breadsticks & Sides",
    "Salads",
    "Desserts",
    "Combos",
    "Combo Meals",
    "Family Meals & Buckets",
    "Family Meals",
    "Chicken Pieces",
    "Chicken Items",
    "Sandwiches & Burgers",
    "Tenders & Nuggets",
    "Biscuits & Rolls",
    "Fried Rice",
    "Chowmein & Lowmein",
    "Rice Noodles",
    "Noodle Soups",
    "Servings",
    "Chinese Specialty",
    "Seafood",
    "Beef & Lamb",
    "Beef & Mutton",
    "Pork",
    "Vegetable",
    "Sides",
    "Kids Meals",
    "Beverages",
    OTHER_ITEMS,
)

_PRIORITY_INDEX = {label: index for index, label in enumerate(CATEGORY_PRIORITY)}


def categorize_item_name(name: str, rules: Sequence[CategoryRule] = CATEGORY_RULES) -> str:
    lowered = (name or "").lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.label
    return OTHER_ITEMS


def categorize(
    items: Iterable[Item],
    name_of: Callable[[Item], str] = lambda item: item["name"],  # type: ignore[index]
) -> Dict[str, List[Item]]:
    """Group *items* by category label.

    Groups appear in first-seen order and keep the items' relative order;
    every item ends up in exactly one group.
    """
    groups: Dict[str, List[Item]] = {}
    for item in items:
        groups.setdefault(categorize_item_name(name_of(item)), []).append(item)
    return groups


def category_sort_key(label: str) -> Tuple[int, str]:
    return (_PRIORITY_INDEX.get(label, len(CATEGORY_PRIORITY)), label)


def sort_categories(labels: Iterable[str]) -> List[str]:
    return sorted(labels, key=category_sort_key)
