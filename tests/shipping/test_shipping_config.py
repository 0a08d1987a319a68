"""Tests for ShippingConfig validation and merging."""

import pytest
from shipping import DEFAULT_SHIPPING_CONFIG, ShippingConfig, WeightTier


class TestWeightTierTable:
    def test_tiers_sorted_with_unbounded_last(self):
        config = ShippingConfig(weight_tiers=(WeightTier(None, 20.0), WeightTier(2000, 9.0), WeightTier(500, 5.0)))
        assert [t.max_grams for t in config.weight_tiers] == [500, 2000, None]

    def test_missing_unbounded_tier_rejected(self):
        with pytest.raises(ValueError):
            ShippingConfig(weight_tiers=(WeightTier(500, 5.0),))

    def test_two_unbounded_tiers_rejected(self):
        with pytest.raises(ValueError):
            ShippingConfig(weight_tiers=(WeightTier(None, 5.0), WeightTier(None, 6.0)))


class TestFromDict:
    def test_empty_returns_base(self):
        assert ShippingConfig.from_dict(None) is DEFAULT_SHIPPING_CONFIG
        assert ShippingConfig.from_dict({}) is DEFAULT_SHIPPING_CONFIG

    def test_partial_override(self):
        config = ShippingConfig.from_dict({"free_shipping_threshold": "75", "use_supplier_quotes": False})
        assert config.free_shipping_threshold == 75.0
        assert config.use_supplier_quotes is False
        assert config.flat_rate == DEFAULT_SHIPPING_CONFIG.flat_rate

    def test_negative_values_clamped(self):
        config = ShippingConfig.from_dict({"minimum_charge": -1, "free_shipping_weight_cap_grams": -5})
        assert config.minimum_charge == 0.0
        assert config.free_shipping_weight_cap_grams == 0

    def test_unknown_keys_ignored(self):
        assert ShippingConfig.from_dict({"tax_rate": 0.2}) == DEFAULT_SHIPPING_CONFIG

    def test_tier_table_replaced(self):
        config = ShippingConfig.from_dict(
            {"weight_tiers": [{"max_grams": 1000, "price": 5}, {"max_grams": None, "price": 10}]}
        )
        assert config.tier_price(800) == 5.0
        assert config.tier_price(5000) == 10.0

    def test_round_trip_through_dict(self):
        data = DEFAULT_SHIPPING_CONFIG.to_dict()
        assert data["weight_tiers"][-1] == {"max_grams": None, "price": 19.99}
        assert ShippingConfig.from_dict(data) == DEFAULT_SHIPPING_CONFIG
