"""Tests for the order email templates."""

import pytest
from notifications.templates import get_template
from notifications.templates._format import address_block, item_lines, money
from notifications.templates.order_confirmation import OrderConfirmationTemplate
from notifications.templates.shipping_update import ShippingUpdateTemplate

ADDRESS = {
    "name": "Ada Lovelace",
    "line1": "12 Analytical Way",
    "city": "Portland",
    "state": "OR",
    "postal_code": "97201",
    "country": "US",
}


class TestRegistry:
    def test_lookup(self):
        assert get_template("OrderConfirmation") is OrderConfirmationTemplate
        assert get_template("ShippingUpdate") is ShippingUpdateTemplate

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            get_template("Newsletter")


class TestFormatting:
    def test_money(self):
        assert money(5) == "$5.00"
        assert money(None) == "$0.00"

    def test_item_lines_flag_digital(self):
        lines = item_lines([{"name": "Guide", "quantity": 1, "unit_price": 12, "is_digital": True}])
        assert lines == "  - Guide x1  $12.00 (digital download)"

    def test_no_items(self):
        assert item_lines([]) == "  (no items)"

    def test_address_block(self):
        assert address_block(ADDRESS).splitlines()[2] == "  Portland, OR 97201"
        assert address_block(None) is None


class TestOrderConfirmation:
    def _render(self, **overrides):
        context = {
            "order_number": "MI-1",
            "customer_name": "Ada",
            "items": [{"name": "Enamel Mug", "quantity": 2, "unit_price": 18.0}],
            "subtotal": 36.0,
            "discount_amount": 0.0,
            "shipping_cost": 5.98,
            "total": 41.98,
            "shipping_address": ADDRESS,
            "download_links": [],
            "has_physical_items": True,
        }
        context.update(overrides)
        return OrderConfirmationTemplate.render(context)

    def test_subject_and_totals(self):
        rendered = self._render()
        assert rendered["subject"] == "Order Confirmed - #MI-1"
        assert "Total: $41.98" in rendered["body"]
        assert "Discount" not in rendered["body"]
        assert "Shipping to:" in rendered["body"]

    def test_discount_line(self):
        assert "Discount: -$3.60" in self._render(discount_amount=3.6)["body"]

    def test_download_links(self):
        rendered = self._render(
            download_links=[{"name": "Guide", "url": "https://shop.example/api/downloads/o/i?token=t"}],
            has_physical_items=False,
        )
        assert "Your downloads are ready" in rendered["body"]
        assert "5-10 business days" not in rendered["body"]


class TestShippingUpdate:
    def test_defaults_to_usps_tracking_url(self):
        rendered = ShippingUpdateTemplate.render({"order_number": "MI-1", "tracking_number": "9400"})
        assert rendered["subject"] == "Your Order Has Shipped! - #MI-1"
        assert "tLabels=9400" in rendered["body"]
        assert "Carrier: USPS" in rendered["body"]

    def test_supplier_tracking_url_preferred(self):
        rendered = ShippingUpdateTemplate.render(
            {"order_number": "MI-1", "tracking_number": "LX1", "tracking_url": "https://t.example/LX1", "carrier": "YunExpress"}
        )
        assert "https://t.example/LX1" in rendered["body"]
        assert "Carrier: YunExpress" in rendered["body"]
