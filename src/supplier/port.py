"""Supplier port — abstract interface for the dropship supplier API.

The ordering code programs against this port; adapters (FakeSupplier for
dev/test, CJSupplier for production) are swapped via configuration.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class SupplierError(Exception):
    """The supplier rejected a call or could not be reached."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class ShipmentLine:
    supplier_variant_id: str
    quantity: int


@dataclass(frozen=True)
class ShipmentRequest:
    """Order-creation payload sent to the supplier."""

    order_number: str
    shipping_name: str
    shipping_phone: str
    shipping_address: str
    shipping_city: str
    shipping_province: str
    shipping_zip: str
    shipping_country_code: str
    email: str | None
    logistic_name: str
    lines: tuple[ShipmentLine, ...] = field(default=())
    placeholder_fields: tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class FreightOption:
    logistic_name: str
    price: float
    aging: str | None = None


class SupplierPort(ABC):
    """Abstract interface for supplier adapters."""

    @abstractmethod
    def get_tracking(self, supplier_order_number: str):
        """Fetch tracking for a supplier order.

        Returns:
            The raw payload. Its shape varies between calls, see
            ``supplier.extraction.extract_tracking_info``.
        """
        ...

    @abstractmethod
    def create_order(self, request: ShipmentRequest) -> dict:
        """Place a supplier order.

        Returns:
            The raw response body; ids are pulled out with
            ``supplier.extraction.extract_supplier_order_fields``.

        Raises:
            SupplierError: when the supplier rejects the order.
        """
        ...

    @abstractmethod
    def get_product_stock(self, supplier_product_id: str) -> dict:
        """Return inventory data for a supplier product."""
        ...

    @abstractmethod
    def calculate_freight(
        self,
        lines: list[ShipmentLine],
        destination_country: str = "US",
        origin_country: str = "US",
    ) -> list[FreightOption]:
        """Return the logistics options the supplier offers for ``lines``."""
        ...
