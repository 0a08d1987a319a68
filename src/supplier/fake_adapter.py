"""Fake supplier adapter — deterministic supplier for testing and development.

Generates mock supplier order ids and tracking payloads. Success/failure
and per-order tracking responses are configurable, and every call is
recorded in ``calls`` for assertions.
"""

from uuid import uuid4

from supplier.port import FreightOption, ShipmentLine, ShipmentRequest, SupplierError, SupplierPort


class FakeSupplier(SupplierPort):
    """Fake supplier that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Supplier unavailable"
        self.calls: list[tuple[str, object]] = []
        self.created_orders: list[ShipmentRequest] = []
        self.tracking: dict[str, object] = {}
        self.tracking_errors: dict[str, str] = {}
        self.freight_options: list[FreightOption] = [
            FreightOption(logistic_name="USPS+", price=5.20, aging="3-5"),
            FreightOption(logistic_name="CJPacket", price=4.10, aging="7-12"),
        ]
        self.stock: dict[str, dict] = {}

    def configure(self, should_succeed: bool = True, failure_reason: str = "Supplier unavailable"):
        """Configure the fake supplier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def set_tracking(self, supplier_order_number: str, payload) -> None:
        """Script the raw tracking payload returned for an order."""
        self.tracking[supplier_order_number] = payload
        self.tracking_errors.pop(supplier_order_number, None)

    def fail_tracking(self, supplier_order_number: str, reason: str = "Tracking lookup failed") -> None:
        """Make ``get_tracking`` raise for one order."""
        self.tracking_errors[supplier_order_number] = reason

    def calls_to(self, method: str) -> list:
        return [args for name, args in self.calls if name == method]

    # -------------------------------------------------------------------
    # SupplierPort
    # -------------------------------------------------------------------
    def get_tracking(self, supplier_order_number: str):
        self.calls.append(("get_tracking", supplier_order_number))
        if supplier_order_number in self.tracking_errors:
            raise SupplierError(self.tracking_errors[supplier_order_number])
        return self.tracking.get(supplier_order_number, {})

    def create_order(self, request: ShipmentRequest) -> dict:
        self.calls.append(("create_order", request))
        if not self.should_succeed:
            raise SupplierError(self.failure_reason, code=1600100)

        self.created_orders.append(request)
        return {
            "orderId": f"cj-{uuid4().hex[:10]}",
            "orderNumber": request.order_number,
        }

    def get_product_stock(self, supplier_product_id: str) -> dict:
        self.calls.append(("get_product_stock", supplier_product_id))
        if not self.should_succeed:
            raise SupplierError(self.failure_reason)
        return self.stock.get(supplier_product_id, {"pid": supplier_product_id, "totalInventory": 100})

    def calculate_freight(
        self,
        lines: list[ShipmentLine],
        destination_country: str = "US",
        origin_country: str = "US",
    ) -> list[FreightOption]:
        self.calls.append(("calculate_freight", list(lines)))
        if not self.should_succeed:
            raise SupplierError(self.failure_reason)
        return list(self.freight_options)

    def reset(self):
        """Restore defaults and clear recorded calls."""
        self.__init__()
