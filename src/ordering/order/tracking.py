"""Tracking Reconciliation Job — pulls supplier shipment status into orders.

Runs on a schedule (cron endpoint or ``manage.py sync-tracking``). Orders in
``processing`` or ``shipped`` that carry a supplier order number are polled
one at a time; the supplier client's shared token bucket spaces the calls.
A failure on one order is recorded in that order's result and the batch
moves on.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from supplier import get_supplier
from supplier.extraction import TrackingInfo, extract_tracking_info
from supplier.port import SupplierPort

from ordering.domain import ordering
from ordering.notification.notification import NotificationType
from ordering.notification.outbox import queue_notification, try_deliver
from ordering.order.order import FulfillmentStatus, Order

logger = structlog.get_logger(__name__)

RECONCILABLE_STATUSES = (FulfillmentStatus.PROCESSING, FulfillmentStatus.SHIPPED)


def next_fulfillment_status(info: TrackingInfo) -> FulfillmentStatus | None:
    """Status the tracking data justifies; None leaves the order as it is.

    The order itself refuses to move backwards, so a vague status after
    ``shipped`` is harmless.
    """
    if info.is_delivered:
        return FulfillmentStatus.DELIVERED
    if info.tracking_number:
        return FulfillmentStatus.SHIPPED
    return None


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------
@ordering.command(part_of="Order")
class RecordTracking:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=100)
    tracking_url = String(max_length=500)
    carrier = String(max_length=100)
    supplier_status = String(max_length=100)
    target_status = String(choices=FulfillmentStatus)


@ordering.command_handler(part_of=Order)
class TrackingHandler:
    @handle(RecordTracking)
    def record_tracking(self, command: RecordTracking) -> dict:
        """Persist tracking and, the first time a tracking number shows up,
        queue the shipping email in the same unit of work."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        updated = order.record_tracking(
            tracking_number=command.tracking_number,
            tracking_url=command.tracking_url,
            carrier=command.carrier,
            supplier_status=command.supplier_status,
            target_status=FulfillmentStatus(command.target_status) if command.target_status else None,
        )

        notification_id = None
        if order.tracking_number and order.email and order.mark_shipping_notice_queued():
            notification_id = queue_notification(
                order_id=str(order.id),
                notification_type=NotificationType.SHIPPING_UPDATE.value,
                recipient=order.email,
                context={
                    "order_number": order.order_number,
                    "customer_name": order.shipping_address.name if order.shipping_address else None,
                    "tracking_number": order.tracking_number,
                    "tracking_url": order.tracking_url,
                    "carrier": order.carrier,
                    "items": order.items_summary(),
                    "shipping_address": order.address_dict(),
                },
            )

        if updated or notification_id:
            repo.add(order)

        return {
            "order_number": order.order_number,
            "tracking_number": order.tracking_number,
            "status": order.fulfillment_status,
            "supplier_status": order.supplier_status,
            "updated": updated,
            "notification_id": notification_id,
        }


# ---------------------------------------------------------------------------
# Batch job
# ---------------------------------------------------------------------------
@dataclass
class ReconciliationResult:
    order_number: str
    tracking_number: str | None = None
    status: str | None = None
    supplier_status: str | None = None
    updated: bool = False
    emailed: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        data = {
            "orderNumber": self.order_number,
            "trackingNumber": self.tracking_number,
            "status": self.status,
            "supplierStatus": self.supplier_status,
            "updated": self.updated,
            "emailed": self.emailed,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class ReconciliationReport:
    results: list[ReconciliationResult] = field(default_factory=list)

    @property
    def checked(self) -> int:
        return len(self.results)

    @property
    def updated(self) -> int:
        return sum(1 for r in self.results if r.updated)

    @property
    def emailed(self) -> int:
        return sum(1 for r in self.results if r.emailed)

    def to_dict(self) -> dict:
        return {
            "checked": self.checked,
            "updated": self.updated,
            "emailed": self.emailed,
            "results": [r.to_dict() for r in self.results],
        }


class TrackingReconciliationJob:
    def __init__(self, supplier: SupplierPort | None = None, throttle: Callable[[], object] | None = None):
        self._supplier = supplier
        # Extra spacing between orders on top of the supplier client's own limiter
        self._throttle = throttle

    @property
    def supplier(self) -> SupplierPort:
        return self._supplier or get_supplier()

    def candidates(self) -> list:
        repo = current_domain.repository_for(Order)
        orders = []
        for status in RECONCILABLE_STATUSES:
            orders.extend(repo._dao.query.filter(fulfillment_status=status.value).all().items)
        return [o for o in orders if o.supplier_order_number]

    def run(self) -> ReconciliationReport:
        report = ReconciliationReport()
        candidates = self.candidates()
        logger.info("Tracking reconciliation started", orders=len(candidates))

        for index, order in enumerate(candidates):
            if index and self._throttle is not None:
                self._throttle()
            report.results.append(self.reconcile(order))

        logger.info(
            "Tracking reconciliation finished",
            checked=report.checked,
            updated=report.updated,
            emailed=report.emailed,
            errors=sum(1 for r in report.results if r.error),
        )
        return report

    def reconcile(self, order) -> ReconciliationResult:
        result = ReconciliationResult(
            order_number=order.order_number,
            tracking_number=order.tracking_number,
            status=order.fulfillment_status,
            supplier_status=order.supplier_status,
        )
        try:
            payload = self.supplier.get_tracking(order.supplier_order_number)
            info = extract_tracking_info(payload)
            target = next_fulfillment_status(info)
            outcome = current_domain.process(
                RecordTracking(
                    order_id=str(order.id),
                    tracking_number=info.tracking_number,
                    tracking_url=info.tracking_url,
                    carrier=info.carrier,
                    supplier_status=info.status,
                    target_status=target.value if target else None,
                ),
                asynchronous=False,
            )
        except Exception as exc:
            logger.error(
                "Tracking reconciliation failed for order",
                order_number=order.order_number,
                supplier_order_number=order.supplier_order_number,
                error=str(exc),
            )
            result.error = str(exc)
            return result

        result.tracking_number = outcome["tracking_number"]
        result.status = outcome["status"]
        result.supplier_status = outcome["supplier_status"]
        result.updated = outcome["updated"]
        if outcome["notification_id"]:
            result.emailed = True
            try_deliver(outcome["notification_id"])
        return result
