"""Supplier Fulfillment Dispatcher — places the supplier order for a paid order.

    dispatch(order_id) -> DispatchResult

Outcomes:
- supplier order already recorded     → success, nothing sent (idempotent)
- no supplier-fulfillable items       → success + skipped, order flagged for manual fulfillment
- some items not fulfillable          → note "N item(s) require manual fulfillment", ship the rest
- supplier rejects or is unreachable  → error kept on ``notes``, success=False

Before calling the supplier the dispatcher claims the order. The claim is
persisted under the repository's optimistic version check, so when two
dispatchers race only one of them reaches ``create_order``.

Supplier errors never leave this component; payment has already succeeded
and must not be undone by a supplier outage.
"""

from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.utils.globals import current_domain
from supplier import get_supplier
from supplier.extraction import extract_supplier_order_fields
from supplier.port import ShipmentLine, ShipmentRequest, SupplierPort

from ordering.catalog.entry import catalog_entries_for
from ordering.order.order import Composition, Order

logger = structlog.get_logger(__name__)

# Placeholders sent when the buyer's captured address is incomplete. Every
# substitution is listed on the order's notes for review before shipment.
PLACEHOLDER_PHONE = "0000000000"
PLACEHOLDER_POSTAL_CODE = "00000"
PLACEHOLDER_COUNTRY = "US"
PLACEHOLDER_PROVINCE = "Unknown"
PLACEHOLDER_CITY = "Unknown"
PLACEHOLDER_ADDRESS = "Unknown Address"
PLACEHOLDER_NAME = "Customer"
DEFAULT_LOGISTIC_NAME = "USPS+"

# A claim older than this belongs to a dispatcher that died mid-flight
CLAIM_TIMEOUT = timedelta(minutes=15)


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    skipped: bool = False
    message: str = ""
    supplier_order_id: str | None = None
    supplier_order_number: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Shipment request
# ---------------------------------------------------------------------------
def build_shipment_request(order: Order, lines: list[ShipmentLine]) -> ShipmentRequest:
    """Shipment request for ``lines``, substituting placeholders for missing address fields."""
    address = order.address_dict() or {}
    placeholders = []

    def pick(field_name: str, placeholder: str, value=None) -> str:
        value = value if value is not None else address.get(field_name)
        if value:
            return value
        placeholders.append(field_name)
        return placeholder

    street = ", ".join(part for part in (address.get("line1"), address.get("line2")) if part)
    name = address.get("name") or order.email

    return ShipmentRequest(
        order_number=order.order_number,
        shipping_name=pick("name", PLACEHOLDER_NAME, name),
        shipping_phone=pick("phone", PLACEHOLDER_PHONE),
        shipping_address=pick("line1", PLACEHOLDER_ADDRESS, street),
        shipping_city=pick("city", PLACEHOLDER_CITY),
        shipping_province=pick("state", PLACEHOLDER_PROVINCE),
        shipping_zip=pick("postal_code", PLACEHOLDER_POSTAL_CODE),
        shipping_country_code=pick("country", PLACEHOLDER_COUNTRY),
        email=order.email,
        logistic_name=DEFAULT_LOGISTIC_NAME,
        lines=tuple(lines),
        placeholder_fields=tuple(placeholders),
    )


def partition_items(order: Order) -> tuple[list[ShipmentLine], int]:
    """Split physical items into supplier lines and a count of unfulfillable ones.

    The supplier variant comes from the catalog first, then from the snapshot
    taken at checkout. Digital items are neither.
    """
    catalog = catalog_entries_for(item.variant_id for item in order.items or [])

    lines = []
    unfulfillable = 0
    for item in order.items or []:
        entry = catalog.get(str(item.variant_id))
        if entry is not None and entry.is_digital:
            continue
        supplier_variant_id = (entry.supplier_variant_id if entry is not None else None) or item.supplier_variant_id
        if supplier_variant_id:
            lines.append(ShipmentLine(supplier_variant_id=supplier_variant_id, quantity=item.quantity))
        else:
            unfulfillable += 1
    return lines, unfulfillable


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------
class SupplierDispatcher:
    def __init__(self, supplier: SupplierPort | None = None):
        self._supplier = supplier

    @property
    def supplier(self) -> SupplierPort:
        return self._supplier or get_supplier()

    def dispatch(self, order_id: str) -> DispatchResult:
        """Place the supplier order. Only a missing order raises."""
        try:
            return self._dispatch(str(order_id))
        except ObjectNotFoundError:
            raise
        except Exception as exc:
            logger.exception("Supplier dispatch crashed", order_id=str(order_id), error=str(exc))
            return DispatchResult(success=False, message=f"Dispatch failed: {exc}")

    def _dispatch(self, order_id: str) -> DispatchResult:
        repo = current_domain.repository_for(Order)
        order = repo.get(order_id)

        if order.has_supplier_order:
            logger.info(
                "Supplier order already exists, skipping dispatch",
                order_number=order.order_number,
                supplier_order_id=order.supplier_order_id,
            )
            return self._existing(order)

        if not order.is_paid:
            return DispatchResult(success=False, message="Order is not paid")

        lines, unfulfillable = partition_items(order)
        if not lines:
            return self._skip(repo, order, unfulfillable)

        claim_token = uuid4().hex
        if not self._claim(repo, order, claim_token):
            return DispatchResult(success=True, message="Dispatch already in progress")

        order = repo.get(order_id)
        if order.supplier_dispatch_claim != claim_token:
            return DispatchResult(success=True, message="Dispatch already in progress")

        request = build_shipment_request(order, lines)
        notes = []
        if unfulfillable:
            notes.append(f"{unfulfillable} item(s) require manual fulfillment")
        if request.placeholder_fields:
            notes.append(f"Placeholder values sent for: {', '.join(request.placeholder_fields)}; review before shipment")
            logger.warning(
                "Shipping address incomplete, placeholders sent to supplier",
                order_number=order.order_number,
                fields=list(request.placeholder_fields),
            )

        try:
            response = self.supplier.create_order(request)
            fields = extract_supplier_order_fields(response)
            if not fields.order_id:
                raise ValueError(f"Supplier response carried no order id: {response!r}")
        except Exception as exc:
            return self._fail(repo, order_id, str(exc))

        order = repo.get(order_id)
        order.record_supplier_order(
            supplier_order_id=fields.order_id,
            supplier_order_number=fields.order_number,
            note="; ".join(notes) or None,
        )
        repo.add(order)

        logger.info(
            "Supplier order placed",
            order_number=order.order_number,
            supplier_order_id=fields.order_id,
            supplier_order_number=fields.order_number,
            lines=len(lines),
            unfulfillable=unfulfillable,
        )
        return DispatchResult(
            success=True,
            message="Supplier order placed",
            supplier_order_id=fields.order_id,
            supplier_order_number=fields.order_number,
        )

    # -------------------------------------------------------------------
    # Outcomes
    # -------------------------------------------------------------------
    @staticmethod
    def _existing(order: Order) -> DispatchResult:
        return DispatchResult(
            success=True,
            message="Supplier order already exists",
            supplier_order_id=order.supplier_order_id,
            supplier_order_number=order.supplier_order_number,
        )

    @staticmethod
    def _skip(repo, order: Order, unfulfillable: int) -> DispatchResult:
        if unfulfillable == 0:
            return DispatchResult(success=True, skipped=True, message="No physical items to dispatch")

        reason = "Manual fulfillment required: no items can be fulfilled by the supplier"
        if order.composition == Composition.MIXED.value:
            reason += "; digital items already delivered"
        order.require_manual_fulfillment(unfulfillable, reason)
        repo.add(order)

        logger.warning(
            "No supplier-fulfillable items, manual fulfillment required",
            order_number=order.order_number,
            unfulfillable=unfulfillable,
        )
        return DispatchResult(success=True, skipped=True, message=reason)

    @staticmethod
    def _claim(repo, order: Order, claim_token: str) -> bool:
        claimed_at = order.supplier_dispatch_claimed_at
        if claimed_at is not None and claimed_at.tzinfo is None:
            claimed_at = claimed_at.replace(tzinfo=UTC)
        if order.supplier_dispatch_claim and claimed_at and datetime.now(UTC) - claimed_at > CLAIM_TIMEOUT:
            logger.warning("Taking over stale dispatch claim", order_number=order.order_number)
            order.release_supplier_dispatch()

        if not order.claim_supplier_dispatch(claim_token):
            return False
        try:
            repo.add(order)
        except ExpectedVersionError:
            logger.info("Lost dispatch claim to a concurrent dispatcher", order_number=order.order_number)
            return False
        return True

    @staticmethod
    def _fail(repo, order_id: str, error: str) -> DispatchResult:
        order = repo.get(order_id)
        order.record_dispatch_failure(error)
        repo.add(order)
        logger.error("Supplier order failed", order_number=order.order_number, error=error)
        return DispatchResult(success=False, message=f"Supplier order failed: {error}")
