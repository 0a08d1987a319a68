"""Tests for the tolerant supplier response parsers."""

import pytest
from supplier.extraction import (
    extract_supplier_order_fields,
    extract_tracking_info,
    first_match,
)


class TestFirstMatch:
    def test_skips_empty_values(self):
        attempts = [lambda p: None, lambda p: "", lambda p: [], lambda p: "hit", lambda p: "later"]
        assert first_match({}, attempts) == "hit"

    def test_no_match(self):
        assert first_match({}, [lambda p: None]) is None


class TestExtractTrackingInfo:
    @pytest.mark.parametrize(
        "payload",
        [
            {"trackingInfoList": [{"trackingNumber": "T1", "logisticName": "USPS", "status": "In transit"}]},
            {"trackingInfo": [{"trackingNo": "T1", "carrier": "USPS", "trackingStatus": "In transit"}]},
            {"logisticTrackingInfo": [{"tracking_no": "T1", "logisticCompany": "USPS", "logisticStatus": "In transit"}]},
            [{"trackNumber": "T1", "logisticName": "USPS", "status": "In transit"}],
            {"trackingNumber": "T1", "logisticName": "USPS", "status": "In transit"},
        ],
    )
    def test_known_shapes(self, payload):
        info = extract_tracking_info(payload)
        assert info.tracking_number == "T1"
        assert info.carrier == "USPS"
        assert info.status == "In transit"

    def test_status_falls_back_to_top_level(self):
        info = extract_tracking_info({"trackingInfoList": [{"trackingNumber": "T1"}], "status": "Delivered"})
        assert info.status == "Delivered"
        assert info.is_delivered

    def test_tracking_url(self):
        info = extract_tracking_info({"trackingInfoList": [{"trackUrl": "https://t.example/T1"}]})
        assert info.tracking_url == "https://t.example/T1"

    @pytest.mark.parametrize("payload", [None, {}, [], "garbage", {"trackingInfoList": []}])
    def test_empty_or_unexpected(self, payload):
        info = extract_tracking_info(payload)
        assert info.tracking_number is None
        assert not info.is_delivered

    def test_blank_strings_are_none(self):
        assert extract_tracking_info({"trackingNumber": "   "}).tracking_number is None

    def test_numeric_tracking_number_stringified(self):
        assert extract_tracking_info({"trackingNumber": 9400111}).tracking_number == "9400111"


class TestExtractSupplierOrderFields:
    @pytest.mark.parametrize(
        "payload",
        [
            {"orderId": "cj-1", "orderNumber": "MI-1"},
            {"order_id": "cj-1", "order_number": "MI-1"},
            {"order": {"orderId": "cj-1", "orderNumber": "MI-1"}},
            {"id": "cj-1", "number": "MI-1"},
        ],
    )
    def test_known_shapes(self, payload):
        fields = extract_supplier_order_fields(payload)
        assert (fields.order_id, fields.order_number) == ("cj-1", "MI-1")

    def test_not_a_dict(self):
        assert extract_supplier_order_fields(["cj-1"]).order_id is None
