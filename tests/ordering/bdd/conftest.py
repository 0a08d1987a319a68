"""Shared BDD fixtures and step definitions for the dropship pipeline."""

import pytest
from ordering.order.dispatch import SupplierDispatcher
from ordering.order.order import FulfillmentStatus, PaymentStatus
from ordering.order.payment_events import PaymentEventProcessor
from pytest_bdd import given, parsers, then

from ordering_helpers import completed_event, place_order, reload

_VARIANTS = {
    "mug": "var-mug",
    "poster": "var-poster",
    "ebook": "var-ebook",
    "print": "var-print",
}


@pytest.fixture(autouse=True)
def _download_secret(monkeypatch):
    monkeypatch.setenv("DOWNLOAD_TOKEN_SECRET", "test-secret")


@pytest.fixture()
def processor(supplier):
    return PaymentEventProcessor(SupplierDispatcher(supplier))


@pytest.fixture()
def outcome():
    """Container for the last step's result."""
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a pending order for {quantity:d} "{product}"'), target_fixture="order")
def _(catalog, supplier, email, quantity, product):
    return place_order([(_VARIANTS[product], quantity)])


@given(
    parsers.cfparse('a pending mixed order of "{product}" and "{other}"'),
    target_fixture="order",
)
def _(catalog, supplier, email, product, other):
    return place_order([(_VARIANTS[product], 1), (_VARIANTS[other], 1)])


@given("the payment provider reports the checkout completed", target_fixture="order")
def _(processor, order, outcome):
    outcome["result"] = processor.handle(completed_event(order.id))
    return reload(order)


@given("the supplier is failing")
def _(supplier):
    supplier.configure(should_succeed=False, failure_reason="balance insufficient")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order payment status is "{status}"'))
def _(order, status):
    assert reload(order).payment_status == PaymentStatus(status).value


@then(parsers.cfparse('the order fulfillment status is "{status}"'))
def _(order, status):
    assert reload(order).fulfillment_status == FulfillmentStatus(status).value


@then(parsers.cfparse('the order notes mention "{text}"'))
def _(order, text):
    assert text in (reload(order).notes or "")


@then(parsers.cfparse("the supplier received {count:d} order(s)"))
def _(supplier, count):
    assert len(supplier.created_orders) == count


@then(parsers.cfparse("{count:d} email(s) went to the buyer"))
def _(email, count):
    assert len(email.sent_to("buyer@example.com")) == count
