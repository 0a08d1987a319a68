"""Tests for the fake supplier and the adapter factory."""

import pytest
import supplier as supplier_module
from supplier import get_rate_limiter, get_supplier, reset_supplier, set_supplier
from supplier.cj_adapter import CJSupplier
from supplier.fake_adapter import FakeSupplier
from supplier.port import ShipmentLine, ShipmentRequest, SupplierError


@pytest.fixture(autouse=True)
def _reset():
    reset_supplier()
    yield
    reset_supplier()


def _request():
    return ShipmentRequest(
        order_number="MI-1",
        shipping_name="Ada",
        shipping_phone="5035550100",
        shipping_address="12 Analytical Way",
        shipping_city="Portland",
        shipping_province="OR",
        shipping_zip="97201",
        shipping_country_code="US",
        email="buyer@example.com",
        logistic_name="USPS+",
        lines=(ShipmentLine("cj-mug", 1),),
    )


class TestFakeSupplier:
    def test_create_order(self):
        fake = FakeSupplier()
        response = fake.create_order(_request())
        assert response["orderId"].startswith("cj-")
        assert response["orderNumber"] == "MI-1"
        assert fake.created_orders == [_request()]

    def test_configured_failure(self):
        fake = FakeSupplier()
        fake.configure(should_succeed=False, failure_reason="balance insufficient")
        with pytest.raises(SupplierError) as exc:
            fake.create_order(_request())
        assert exc.value.code == 1600100

    def test_scripted_tracking(self):
        fake = FakeSupplier()
        fake.set_tracking("MI-1", {"trackingNumber": "T1"})
        assert fake.get_tracking("MI-1") == {"trackingNumber": "T1"}
        assert fake.get_tracking("MI-2") == {}

    def test_tracking_failure(self):
        fake = FakeSupplier()
        fake.fail_tracking("MI-1", "boom")
        with pytest.raises(SupplierError):
            fake.get_tracking("MI-1")

    def test_reset(self):
        fake = FakeSupplier()
        fake.create_order(_request())
        fake.reset()
        assert fake.calls == []


class TestSupplierFactory:
    def test_default_is_fake(self, monkeypatch):
        monkeypatch.delenv("SUPPLIER_ADAPTER", raising=False)
        assert isinstance(get_supplier(), FakeSupplier)
        assert get_supplier() is get_supplier()

    def test_cj_adapter(self, monkeypatch):
        monkeypatch.setenv("SUPPLIER_ADAPTER", "cj")
        monkeypatch.setenv("CJ_API_BASE_URL", "https://cj.example/api/")
        monkeypatch.setenv("CJ_API_KEY", "key")

        adapter = get_supplier()

        assert isinstance(adapter, CJSupplier)
        assert adapter.base_url == "https://cj.example/api"
        assert adapter.rate_limiter is get_rate_limiter()

    def test_unknown_adapter(self, monkeypatch):
        monkeypatch.setenv("SUPPLIER_ADAPTER", "acme")
        with pytest.raises(ValueError):
            get_supplier()

    def test_override(self):
        fake = FakeSupplier()
        set_supplier(fake)
        assert supplier_module.get_supplier() is fake
