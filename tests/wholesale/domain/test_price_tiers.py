"""Tests for quantity-tier price resolution."""

import pytest
from protean.exceptions import ValidationError

from wholesale.pricing.tiers import (
    BulkDiscount,
    PriceTier,
    bulk_discount_percent,
    parse_bulk_discounts,
    parse_price_tiers,
    resolve_tier_index,
    resolve_unit_price,
    tiers_json,
)

TIERS = (
    PriceTier(min_qty=1, max_qty=49, price=110.0),
    PriceTier(min_qty=50, max_qty=199, price=100.0),
    PriceTier(min_qty=200, max_qty=None, price=95.0),
)


class TestResolveUnitPrice:
    @pytest.mark.parametrize(
        "quantity, expected",
        [(1, 110.0), (10, 110.0), (49, 110.0), (50, 100.0), (199, 100.0), (200, 95.0), (500, 95.0)],
    )
    def test_standard_schedule(self, quantity, expected):
        assert resolve_unit_price(TIERS, quantity) == expected

    def test_quantity_below_first_tier_uses_first_tier(self):
        tiers = (PriceTier(10, 99, 50.0), PriceTier(100, None, 45.0))
        assert resolve_tier_index(tiers, 3) == 0
        assert resolve_unit_price(tiers, 3) == 50.0

    def test_bounded_last_tier_absorbs_larger_quantities(self):
        tiers = (PriceTier(1, 9, 20.0), PriceTier(10, 99, 18.0))
        assert resolve_unit_price(tiers, 150) == 18.0

    def test_overlapping_tiers_prefer_the_later_match(self):
        tiers = (PriceTier(1, 100, 20.0), PriceTier(50, 200, 17.0))
        assert resolve_tier_index(tiers, 75) == 1

    def test_gap_falls_back_to_last_satisfied_tier(self):
        tiers = (PriceTier(1, 10, 20.0), PriceTier(20, 30, 15.0), PriceTier(40, 50, 12.0))
        # 15 is inside no range; index stays at the default
        assert resolve_tier_index(tiers, 15) == 0

    def test_empty_schedule_returns_default(self):
        assert resolve_tier_index((), 5) is None
        assert resolve_unit_price((), 5, default=42.0) == 42.0

    def test_empty_schedule_without_default_is_rejected(self):
        with pytest.raises(ValidationError):
            resolve_unit_price((), 5)


class TestParsePriceTiers:
    def test_parses_camel_case_json(self):
        raw = '[{"minQty": 1, "maxQty": 49, "price": 110}, {"minQty": 50, "maxQty": null, "price": 100}]'
        tiers = parse_price_tiers(raw)
        assert tiers == (PriceTier(1, 49, 110.0), PriceTier(50, None, 100.0))

    def test_zero_max_means_unbounded(self):
        tiers = parse_price_tiers([{"min_qty": 5, "max_qty": 0, "price": 9}])
        assert tiers[0].max_qty is None

    def test_round_trips_through_json(self):
        assert parse_price_tiers(tiers_json(TIERS)) == TIERS

    def test_empty_input(self):
        assert parse_price_tiers(None) == ()
        assert parse_price_tiers("") == ()

    def test_rejects_descending_order(self):
        with pytest.raises(ValidationError) as exc:
            parse_price_tiers([{"minQty": 50, "price": 10}, {"minQty": 1, "price": 12}])
        assert "price_tiers" in exc.value.messages

    def test_rejects_empty_range(self):
        with pytest.raises(ValidationError):
            parse_price_tiers([{"minQty": 50, "maxQty": 10, "price": 10}])

    def test_rejects_negative_price(self):
        with pytest.raises(ValidationError):
            parse_price_tiers([{"minQty": 1, "price": -1}])


class TestBulkDiscounts:
    SCHEDULE = (BulkDiscount(100, 5.0), BulkDiscount(500, 10.0))

    def test_no_threshold_reached(self):
        assert bulk_discount_percent(self.SCHEDULE, 99) == 0.0

    def test_highest_reached_threshold_wins(self):
        assert bulk_discount_percent(self.SCHEDULE, 100) == 5.0
        assert bulk_discount_percent(self.SCHEDULE, 750) == 10.0

    def test_parse_rejects_out_of_range_percent(self):
        with pytest.raises(ValidationError):
            parse_bulk_discounts([{"minQty": 10, "discountPercent": 120}])
