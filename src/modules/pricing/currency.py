"""GYD display formatting.

The display contract is ``GYD$<integer with thousands separators>`` with no
decimal places; amounts are rounded half away from zero before display.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CURRENCY_PREFIX = "GYD$"

Amount = Union[int, float, Decimal]

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")


class InvalidAmount(ValueError):
    """Text could not be read back as an amount."""


def _to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, float):
        return Decimal(repr(amount))
    return Decimal(amount)


def to_whole_units(amount: Amount) -> int:
    return int(_to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(amount: Amount) -> str:
    """``1234 -> "GYD$1,234"``; ``0 -> "GYD$0"``."""
    return f"{CURRENCY_PREFIX}{to_whole_units(amount):,}"


def format_compact_currency(amount: Amount) -> str:
    """``1500 -> "GYD$1.5K"``, ``1500000 -> "GYD$1.5M"``; below 1000 unchanged."""
    value = _to_decimal(amount)
    if value >= 1_000_000:
        scaled = (value / 1_000_000).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{CURRENCY_PREFIX}{scaled}M"
    if value >= 1_000:
        scaled = (value / 1_000).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{CURRENCY_PREFIX}{scaled}K"
    return f"{CURRENCY_PREFIX}{value.normalize():f}"


def freeze_price(price: Amount) -> Decimal:
    """Round to two decimals before a price is persisted."""
    return _to_decimal(price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_currency(text: str) -> Decimal:
    """Inverse of ``format_currency`` for any string it produces."""
    cleaned = _NON_NUMERIC.sub("", text or "")
    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:
        raise InvalidAmount(f"Not a currency amount: {text!r}") from exc
