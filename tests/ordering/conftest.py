import pytest
from notifications.channel import EMAIL, reset_channels, set_channel
from notifications.channel.fake_email import FakeEmailAdapter
from payments.webhook import reset_webhook_verifier
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain
from supplier import reset_supplier, set_supplier
from supplier.fake_adapter import FakeSupplier

from ordering_helpers import place_order, publish_catalog_entry


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        # Clear all databases and drain the event store
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_supplier()
    reset_channels()
    reset_webhook_verifier()


@pytest.fixture()
def supplier():
    fake = FakeSupplier()
    set_supplier(fake)
    return fake


@pytest.fixture()
def email():
    fake = FakeEmailAdapter()
    set_channel(EMAIL, fake)
    return fake


@pytest.fixture()
def catalog():
    """Standard catalog: a US mug, a CN poster, an ebook and an unsupported print."""
    return {
        "mug": publish_catalog_entry(
            "var-mug", name="Enamel Mug", price=18.0, warehouse="US", weight_grams=400, supplier_variant_id="cj-mug"
        ),
        "poster": publish_catalog_entry(
            "var-poster", name="Poster", price=24.0, warehouse="CN", weight_grams=300, supplier_variant_id="cj-poster"
        ),
        "ebook": publish_catalog_entry(
            "var-ebook", name="Field Guide (PDF)", price=12.0, digital_file_path="downloads/field-guide.pdf"
        ),
        "print": publish_catalog_entry("var-print", name="Hand-pulled Print", price=40.0, weight_grams=250),
    }


@pytest.fixture()
def pending_order(catalog, supplier):
    """A physical order awaiting payment."""
    return place_order([("var-mug", 2)], email="buyer@example.com")
