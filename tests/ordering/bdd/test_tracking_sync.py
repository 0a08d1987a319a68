"""BDD tests for the tracking reconciliation job."""

from ordering.order.tracking import TrackingReconciliationJob
from pytest_bdd import given, parsers, scenarios, when

from ordering_helpers import reload

scenarios("features/tracking_sync.feature")


@given(parsers.cfparse('the supplier reports tracking "{tracking_number}" with status "{status}"'))
def _(supplier, order, tracking_number, status):
    supplier.set_tracking(
        reload(order).supplier_order_number,
        {"trackingInfoList": [{"trackingNumber": tracking_number, "logisticName": "USPS", "status": status}]},
    )


@given("the supplier reports no tracking details")
def _(supplier, order):
    supplier.set_tracking(reload(order).supplier_order_number, {})


@given("tracking is reconciled")
@when("tracking is reconciled")
def _(supplier, outcome):
    outcome["report"] = TrackingReconciliationJob(supplier).run()
