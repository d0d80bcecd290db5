"""Fee calculator for errands and delivery orders.

All amounts are ``Decimal`` whole GYD.  The rate tables live in
``settings.PRICING`` and are loaded into an immutable ``PricingConfig``;
every function here is pure and takes the config explicitly (defaulting to
the one built from settings).

Distance fee
    Cumulative per-km bands (first 5 km at one rate, the next 10 km at
    another, ...), scaled by the complexity tier multiplier.  The function is
    zero at 0 km and non-decreasing in distance for every tier.

Errand flat price
    Errands are billed at ``FIXED_ERRAND_PRICE`` regardless of the computed
    breakdown while ``ERRAND_FLAT_PRICE_ENABLED`` is on.  ``quote_errand``
    always returns both so the discrepancy stays visible.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any, List, Mapping, Optional, Tuple

from django.conf import settings
from pydantic import BaseModel, ConfigDict, field_validator

from modules.pricing.currency import Amount, format_currency

WHOLE = Decimal("1")


class ComplexityTier(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UnknownComplexityTier(ValueError):
    pass


def _whole(value: Decimal) -> Decimal:
    return value.quantize(WHOLE, rounding=ROUND_HALF_UP)


def _as_decimal(value: Amount) -> Decimal:
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class PricingConfig(BaseModel):
    """Immutable snapshot of ``settings.PRICING``."""

    model_config = ConfigDict(frozen=True)

    currency: str = "GYD"
    service_fee: Decimal = Decimal("200")
    distance_bands: Tuple[Tuple[Optional[Decimal], Decimal], ...] = (
        (Decimal("5"), Decimal("150")),
        (Decimal("15"), Decimal("120")),
        (None, Decimal("100")),
    )
    complexity_multipliers: Mapping[str, Decimal] = {
        "low": Decimal("1.00"),
        "medium": Decimal("1.25"),
        "high": Decimal("1.50"),
    }
    delivery_base_fee: Decimal = Decimal("1000")
    delivery_price_per_km: Decimal = Decimal("150")
    delivery_minimum_fee: Decimal = Decimal("1000")
    errand_base_amount: Decimal = Decimal("1000")
    fixed_errand_price: Decimal = Decimal("2000")
    errand_flat_price_enabled: bool = True
    enforce_service_area: bool = True

    @field_validator("distance_bands")
    @classmethod
    def bands_must_ascend(cls, v):
        if not v:
            raise ValueError("At least one distance band is required.")
        bounds = [upper for upper, _ in v]
        if None in bounds[:-1]:
            raise ValueError("Only the last distance band may be open-ended.")
        closed = [b for b in bounds if b is not None]
        if closed != sorted(closed):
            raise ValueError("Distance bands must be in ascending order.")
        if any(rate < 0 for _, rate in v):
            raise ValueError("Distance band rates cannot be negative.")
        return v

    @field_validator("complexity_multipliers")
    @classmethod
    def multipliers_cover_every_tier(cls, v):
        missing = {tier.value for tier in ComplexityTier} - set(v)
        if missing:
            raise ValueError(f"Missing complexity multipliers: {sorted(missing)}")
        return v

    @classmethod
    def from_settings(cls) -> PricingConfig:
        raw: Mapping[str, Any] = getattr(settings, "PRICING", {})
        data = {key.lower(): value for key, value in raw.items()}
        if "distance_bands" in data:
            data["distance_bands"] = tuple(
                (None if upper is None else Decimal(str(upper)), Decimal(str(rate)))
                for upper, rate in data["distance_bands"]
            )
        if "complexity_multipliers" in data:
            data["complexity_multipliers"] = {
                str(tier): Decimal(str(mult))
                for tier, mult in data["complexity_multipliers"].items()
            }
        return cls(**data)

    def multiplier(self, tier: str) -> Decimal:
        try:
            return self.complexity_multipliers[str(tier)]
        except KeyError:
            raise UnknownComplexityTier(f"Unknown complexity tier: {tier}") from None


def get_pricing_config() -> PricingConfig:
    return PricingConfig.from_settings()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class PriceBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_price: Decimal
    service_fee: Decimal
    distance_fee: Decimal
    total_price: Decimal
    currency: str = "GYD"

    def formatted(self) -> dict[str, str]:
        return {
            "base_price": format_currency(self.base_price),
            "service_fee": format_currency(self.service_fee),
            "distance_fee": format_currency(self.distance_fee),
            "total_price": format_currency(self.total_price),
        }


class ErrandQuote(BaseModel):
    """Computed breakdown next to the flat price, plus the persisted split.

    ``base_price + distance_fee + complexity_fee == total_price`` always
    holds for the persisted split.
    """

    model_config = ConfigDict(frozen=True)

    breakdown: PriceBreakdown
    flat_price: Decimal
    flat_price_applied: bool
    base_price: Decimal
    distance_fee: Decimal
    complexity_fee: Decimal
    total_price: Decimal


# ---------------------------------------------------------------------------
# Calculations
# ---------------------------------------------------------------------------


def banded_distance_fee(distance_km: Amount, config: PricingConfig) -> Decimal:
    """Unrounded fee for *distance_km* before the tier multiplier."""
    remaining = max(_as_decimal(distance_km), Decimal("0"))
    lower = Decimal("0")
    fee = Decimal("0")
    for upper, rate in config.distance_bands:
        if remaining <= 0:
            break
        span = remaining if upper is None else min(remaining, upper - lower)
        fee += span * rate
        remaining -= span
        if upper is not None:
            lower = upper
    return fee


def calculate_price(
    base_amount: Amount,
    distance_km: Amount,
    complexity_tier: str = ComplexityTier.LOW,
    config: Optional[PricingConfig] = None,
) -> PriceBreakdown:
    config = config or get_pricing_config()
    multiplier = config.multiplier(complexity_tier)
    base_price = _as_decimal(base_amount)
    distance_fee = _whole(banded_distance_fee(distance_km, config) * multiplier)
    return PriceBreakdown(
        base_price=base_price,
        service_fee=config.service_fee,
        distance_fee=distance_fee,
        total_price=base_price + config.service_fee + distance_fee,
        currency=config.currency,
    )


def calculate_delivery_fee(
    distance_km: Optional[Amount],
    config: Optional[PricingConfig] = None,
) -> Decimal:
    """``base + km * rate`` floored at the minimum; minimum when distance is unknown."""
    config = config or get_pricing_config()
    if distance_km is None:
        return _whole(config.delivery_minimum_fee)
    fee = config.delivery_base_fee + _as_decimal(distance_km) * config.delivery_price_per_km
    return _whole(max(fee, config.delivery_minimum_fee))


def quote_errand(
    distance_km: Amount,
    complexity_tier: str = ComplexityTier.LOW,
    base_amount: Optional[Amount] = None,
    config: Optional[PricingConfig] = None,
) -> ErrandQuote:
    config = config or get_pricing_config()
    base = config.errand_base_amount if base_amount is None else base_amount
    breakdown = calculate_price(base, distance_km, complexity_tier, config)

    if config.errand_flat_price_enabled:
        flat = config.fixed_errand_price
        return ErrandQuote(
            breakdown=breakdown,
            flat_price=flat,
            flat_price_applied=True,
            base_price=flat,
            distance_fee=Decimal("0"),
            complexity_fee=Decimal("0"),
            total_price=flat,
        )

    # The complexity fee is whatever the tier adds on top of the low-tier distance fee.
    low_tier = calculate_price(base, distance_km, ComplexityTier.LOW, config)
    return ErrandQuote(
        breakdown=breakdown,
        flat_price=config.fixed_errand_price,
        flat_price_applied=False,
        base_price=breakdown.base_price + breakdown.service_fee,
        distance_fee=low_tier.distance_fee,
        complexity_fee=breakdown.distance_fee - low_tier.distance_fee,
        total_price=breakdown.total_price,
    )


def distance_bands_table(config: Optional[PricingConfig] = None) -> List[dict[str, Any]]:
    """Rate table as plain dicts for the quote endpoint."""
    config = config or get_pricing_config()
    return [
        {"up_to_km": None if upper is None else str(upper), "rate_per_km": str(rate)}
        for upper, rate in config.distance_bands
    ]
