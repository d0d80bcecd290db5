"""Unit tests for the fee calculator.

Covers:
- Cumulative distance bands and tier multipliers.
- Delivery fee floor and unknown distance.
- Errand quote in flat-price and computed modes.
- Configuration validation.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.pricing.calculator import (
    ComplexityTier,
    PricingConfig,
    UnknownComplexityTier,
    banded_distance_fee,
    calculate_delivery_fee,
    calculate_price,
    distance_bands_table,
    get_pricing_config,
    quote_errand,
)

pytestmark = pytest.mark.unit


@pytest.fixture()
def config():
    return PricingConfig()


@pytest.fixture()
def computed_config():
    return PricingConfig(errand_flat_price_enabled=False)


class TestDistanceFee:
    @pytest.mark.parametrize(
        "km,expected",
        [
            (0, Decimal("0")),
            (5, Decimal("750")),
            (10, Decimal("1350")),
            (15, Decimal("1950")),
            (20, Decimal("2450")),
        ],
    )
    def test_banded_fee(self, config, km, expected):
        assert banded_distance_fee(km, config) == expected

    def test_negative_distance_is_zero(self, config):
        assert banded_distance_fee(-3, config) == 0

    def test_non_decreasing_for_every_tier(self, config):
        for tier in ComplexityTier:
            fees = [
                calculate_price(1000, Decimal(km) / 2, tier, config).distance_fee
                for km in range(0, 60)
            ]
            assert fees == sorted(fees)


class TestCalculatePrice:
    def test_low_tier_breakdown(self, config):
        breakdown = calculate_price(1000, 10, ComplexityTier.LOW, config)
        assert breakdown.base_price == Decimal("1000")
        assert breakdown.service_fee == Decimal("200")
        assert breakdown.distance_fee == Decimal("1350")
        assert breakdown.total_price == Decimal("2550")
        assert breakdown.currency == "GYD"

    def test_medium_tier_rounds_half_up(self, config):
        breakdown = calculate_price(1000, 10, "medium", config)
        assert breakdown.distance_fee == Decimal("1688")

    def test_high_tier(self, config):
        breakdown = calculate_price(1000, 10, "high", config)
        assert breakdown.distance_fee == Decimal("2025")
        assert breakdown.total_price == Decimal("3225")

    def test_total_is_sum_of_parts(self, config):
        breakdown = calculate_price(750, 3.3, "medium", config)
        assert breakdown.total_price == (
            breakdown.base_price + breakdown.service_fee + breakdown.distance_fee
        )

    def test_unknown_tier(self, config):
        with pytest.raises(UnknownComplexityTier):
            calculate_price(1000, 1, "extreme", config)

    def test_formatted(self, config):
        formatted = calculate_price(1000, 10, "low", config).formatted()
        assert formatted["total_price"] == "GYD$2,550"


class TestDeliveryFee:
    def test_unknown_distance_is_minimum(self, config):
        assert calculate_delivery_fee(None, config) == Decimal("1000")

    def test_base_plus_per_km(self, config):
        assert calculate_delivery_fee(2, config) == Decimal("1300")

    def test_minimum_floor(self):
        cheap = PricingConfig(delivery_base_fee=Decimal("100"), delivery_minimum_fee=Decimal("500"))
        assert calculate_delivery_fee(1, cheap) == Decimal("500")

    def test_rounded_to_whole_units(self, config):
        assert calculate_delivery_fee(Decimal("1.003"), config) == Decimal("1150")


class TestQuoteErrand:
    def test_flat_price_applied_by_default(self, config):
        quote = quote_errand(10, "high", config=config)
        assert quote.flat_price_applied is True
        assert quote.total_price == Decimal("2000")
        assert quote.base_price == Decimal("2000")
        assert quote.distance_fee == 0
        assert quote.complexity_fee == 0
        # The computed breakdown is still reported next to the flat price.
        assert quote.breakdown.total_price == Decimal("3225")

    def test_computed_mode_splits_complexity_fee(self, computed_config):
        quote = quote_errand(10, "high", config=computed_config)
        assert quote.flat_price_applied is False
        assert quote.base_price == Decimal("1200")
        assert quote.distance_fee == Decimal("1350")
        assert quote.complexity_fee == Decimal("675")
        assert quote.total_price == Decimal("3225")

    def test_split_always_sums_to_total(self, computed_config):
        for tier in ComplexityTier:
            quote = quote_errand(Decimal("7.25"), tier, base_amount=1500, config=computed_config)
            assert quote.base_price + quote.distance_fee + quote.complexity_fee == quote.total_price

    def test_low_tier_has_no_complexity_fee(self, computed_config):
        assert quote_errand(4, "low", config=computed_config).complexity_fee == 0


class TestPricingConfig:
    def test_bands_must_ascend(self):
        with pytest.raises(ValidationError):
            PricingConfig(distance_bands=((Decimal("10"), Decimal("1")), (Decimal("5"), Decimal("1"))))

    def test_only_last_band_open_ended(self):
        with pytest.raises(ValidationError):
            PricingConfig(distance_bands=((None, Decimal("1")), (Decimal("5"), Decimal("1"))))

    def test_every_tier_needs_a_multiplier(self):
        with pytest.raises(ValidationError):
            PricingConfig(complexity_multipliers={"low": Decimal("1")})

    def test_is_immutable(self, config):
        with pytest.raises(ValidationError):
            config.service_fee = Decimal("1")

    def test_from_settings(self, settings):
        settings.PRICING = {**settings.PRICING, "SERVICE_FEE": 350, "ERRAND_FLAT_PRICE_ENABLED": False}
        loaded = get_pricing_config()
        assert loaded.service_fee == Decimal("350")
        assert loaded.errand_flat_price_enabled is False
        assert loaded.multiplier("medium") == Decimal("1.25")

    def test_distance_bands_table(self, config):
        table = distance_bands_table(config)
        assert table[0] == {"up_to_km": "5", "rate_per_km": "150"}
        assert table[-1]["up_to_km"] is None
