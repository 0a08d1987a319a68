"""Tests for the shipping cost resolution cascade."""

import pytest
from shipping import (
    DEFAULT_SHIPPING_CONFIG,
    CartLine,
    ShippingConfig,
    ShippingMethod,
    WeightTier,
    resolve_shipping_cost,
    shipping_label,
)


def _config(**overrides):
    defaults = {"use_supplier_quotes": False}
    defaults.update(overrides)
    return ShippingConfig(**defaults)


def _physical(weight=None, quantity=1, price=10.0, supplier_variant_id=None, warehouse="US"):
    return CartLine(
        quantity=quantity,
        unit_price=price,
        weight_grams=weight,
        supplier_variant_id=supplier_variant_id,
        warehouse=warehouse,
    )


class TestDigitalCarts:
    def test_digital_only_is_free(self):
        quote = resolve_shipping_cost([CartLine(quantity=1, unit_price=12.0, is_digital=True)], 12.0, _config())

        assert quote.cost == 0.0
        assert quote.method == ShippingMethod.FREE.value
        assert quote.label == "Digital Delivery"

    def test_digital_items_ignored_in_mixed_cart(self):
        items = [CartLine(quantity=1, unit_price=12.0, is_digital=True, weight_grams=99999), _physical(weight=400)]
        quote = resolve_shipping_cost(items, 22.0, _config())
        assert quote.cost == 4.99


class TestFreeShipping:
    def test_threshold_met(self):
        quote = resolve_shipping_cost([_physical(weight=400)], 50.0, _config())
        assert quote.method == ShippingMethod.FREE.value
        assert quote.label == "Free Shipping"

    def test_below_threshold(self):
        quote = resolve_shipping_cost([_physical(weight=400)], 49.99, _config())
        assert quote.method == ShippingMethod.WEIGHT_TIER.value

    def test_heavy_item_blocks_free_shipping(self):
        config = _config(free_shipping_threshold=50.0, free_shipping_weight_cap_grams=2000)

        quote = resolve_shipping_cost([_physical(weight=3000)], 80.0, config)

        assert quote.method == ShippingMethod.WEIGHT_TIER.value
        assert quote.cost == 12.99

    def test_unknown_weight_does_not_block(self):
        config = _config(free_shipping_weight_cap_grams=2000)

        quote = resolve_shipping_cost([_physical(weight=None)], 80.0, config)

        assert quote.method == ShippingMethod.FREE.value
        assert quote.unknown_weight_items == 1

    def test_zero_cap_means_no_cap(self):
        config = _config(free_shipping_weight_cap_grams=0)
        quote = resolve_shipping_cost([_physical(weight=50000)], 80.0, config)
        assert quote.method == ShippingMethod.FREE.value

    def test_disabled(self):
        quote = resolve_shipping_cost([_physical(weight=400)], 500.0, _config(free_shipping_enabled=False))
        assert quote.method == ShippingMethod.WEIGHT_TIER.value


class TestSupplierQuote:
    def test_markup_applied(self):
        config = _config(use_supplier_quotes=True, quote_markup_percent=15.0, minimum_charge=2.99)
        quote = resolve_shipping_cost(
            [_physical(weight=400, supplier_variant_id="cj-1")], 20.0, config, quote_freight=lambda lines: 10.0
        )
        assert quote.cost == 11.5
        assert quote.method == ShippingMethod.SUPPLIER_QUOTE.value

    def test_minimum_charge(self):
        config = _config(use_supplier_quotes=True, minimum_charge=2.99)
        quote = resolve_shipping_cost(
            [_physical(supplier_variant_id="cj-1")], 20.0, config, quote_freight=lambda lines: 1.0
        )
        assert quote.cost == 2.99

    def test_only_supplier_lines_are_quoted(self):
        seen = []

        def quote_freight(lines):
            seen.extend(lines)
            return 5.0

        items = [_physical(weight=400, supplier_variant_id="cj-1", quantity=2), _physical(weight=400)]
        resolve_shipping_cost(items, 20.0, _config(use_supplier_quotes=True), quote_freight=quote_freight)

        assert [(line.supplier_variant_id, line.quantity) for line in seen] == [("cj-1", 2)]

    @pytest.mark.parametrize("price", [None, 0.0])
    def test_empty_quote_falls_through(self, price):
        quote = resolve_shipping_cost(
            [_physical(weight=400, supplier_variant_id="cj-1")],
            20.0,
            _config(use_supplier_quotes=True),
            quote_freight=lambda lines: price,
        )
        assert quote.method == ShippingMethod.WEIGHT_TIER.value

    def test_failing_quote_falls_through(self):
        def quote_freight(lines):
            raise TimeoutError("supplier slow")

        quote = resolve_shipping_cost(
            [_physical(weight=400, supplier_variant_id="cj-1")],
            20.0,
            _config(use_supplier_quotes=True),
            quote_freight=quote_freight,
        )
        assert quote.cost == 4.99

    def test_no_supplier_lines_skips_quote(self):
        calls = []
        resolve_shipping_cost(
            [_physical(weight=400)], 20.0, _config(use_supplier_quotes=True), quote_freight=calls.append
        )
        assert calls == []


class TestWeightTiers:
    @pytest.mark.parametrize(
        "weight,price",
        [(100, 4.99), (500, 4.99), (501, 6.99), (2000, 8.99), (4999, 12.99), (25000, 19.99)],
    )
    def test_tier_lookup(self, weight, price):
        assert resolve_shipping_cost([_physical(weight=weight)], 10.0, _config()).cost == price

    def test_heaviest_item_decides(self):
        items = [_physical(weight=100), _physical(weight=1500)]
        assert resolve_shipping_cost(items, 10.0, _config()).cost == 8.99

    def test_unknown_weight_raises_floor(self):
        items = [_physical(weight=100), _physical(weight=None)]
        quote = resolve_shipping_cost(items, 10.0, _config())
        assert quote.cost == 8.99
        assert quote.unknown_weight_items == 1

    def test_tier_above_unknown_rate_kept(self):
        items = [_physical(weight=6000), _physical(weight=None)]
        assert resolve_shipping_cost(items, 10.0, _config()).cost == 19.99


class TestFallbacks:
    def test_nothing_weighed(self):
        quote = resolve_shipping_cost([_physical()], 10.0, _config())
        assert quote.method == ShippingMethod.UNKNOWN_WEIGHT.value
        assert quote.cost == 8.99

    def test_flat_rate_last(self):
        quote = resolve_shipping_cost([_physical()], 10.0, _config(unknown_weight_rate=0, flat_rate=3.5))
        assert quote.method == ShippingMethod.FLAT_RATE.value
        assert quote.cost == 3.5

    def test_custom_tiers(self):
        config = _config(weight_tiers=(WeightTier(None, 9.0), WeightTier(1000, 3.0)))
        assert resolve_shipping_cost([_physical(weight=800)], 10.0, config).cost == 3.0


class TestShippingLabel:
    def test_us_only(self):
        assert shipping_label([_physical(warehouse="US")]) == "Fast US Shipping"

    def test_mixed(self):
        assert shipping_label([_physical(warehouse="US"), _physical(warehouse="CN")]) == "Mixed Shipping"

    def test_overseas(self):
        assert shipping_label([_physical(warehouse="CN")]) == "Standard Shipping"

    def test_default_config_uses_supplier_quotes(self):
        assert DEFAULT_SHIPPING_CONFIG.use_supplier_quotes is True
