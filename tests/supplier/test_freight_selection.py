"""Tests for choosing the freight price from supplier logistics options."""

from shipping import FreightLine
from supplier.fake_adapter import FakeSupplier
from supplier.freight import freight_quoter, select_freight_price
from supplier.port import FreightOption


class TestSelectFreightPrice:
    def test_preferred_service_wins(self):
        options = [FreightOption("CJPacket", 3.0), FreightOption("USPS+", 5.2)]
        assert select_freight_price(options) == 5.2

    def test_cheapest_otherwise(self):
        options = [FreightOption("DHL", 12.0), FreightOption("CJPacket", 4.1)]
        assert select_freight_price(options) == 4.1

    def test_zero_priced_options_discarded(self):
        options = [FreightOption("USPS+", 0.0), FreightOption("DHL", 12.0)]
        assert select_freight_price(options) == 12.0

    def test_nothing_usable(self):
        assert select_freight_price([FreightOption("USPS+", 0.0)]) is None
        assert select_freight_price([]) is None


class TestFreightQuoter:
    def test_quotes_through_supplier(self):
        supplier = FakeSupplier()
        quote = freight_quoter(supplier, destination_country="CA")

        assert quote([FreightLine("cj-mug", 2)]) == 5.2
        lines = supplier.calls_to("calculate_freight")[0]
        assert (lines[0].supplier_variant_id, lines[0].quantity) == ("cj-mug", 2)

    def test_supplier_error_is_no_quote(self):
        supplier = FakeSupplier()
        supplier.configure(should_succeed=False)
        assert freight_quoter(supplier)([FreightLine("cj-mug", 1)]) is None

    def test_no_lines(self):
        supplier = FakeSupplier()
        assert freight_quoter(supplier)([]) is None
        assert supplier.calls == []
