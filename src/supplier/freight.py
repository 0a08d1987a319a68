"""Freight quote selection for the shipping resolver's supplier-quote step."""

import structlog

from shipping.resolver import FreightLine
from supplier.port import FreightOption, ShipmentLine, SupplierPort

logger = structlog.get_logger(__name__)

PREFERRED_LOGISTICS = ("USPS+", "USPS Plus")


def select_freight_price(options: list[FreightOption]) -> float | None:
    """Pick the price to charge from the supplier's logistics options.

    Zero-priced options are discarded (the supplier reports $0 when shipping
    is baked into the product cost). The preferred service wins when
    offered, otherwise the cheapest remaining option.
    """
    valid = [o for o in options if o.price and o.price > 0]
    if not valid:
        return None
    for option in valid:
        if option.logistic_name in PREFERRED_LOGISTICS:
            return option.price
    return min(valid, key=lambda o: o.price).price


def freight_quoter(supplier: SupplierPort, destination_country: str = "US"):
    """Build the ``quote_freight`` callable the resolver expects.

    Errors are logged and reported as "no quote" so the resolver falls
    through to the weight tiers.
    """

    def quote_freight(lines: list[FreightLine]) -> float | None:
        if not lines:
            return None
        try:
            options = supplier.calculate_freight(
                [ShipmentLine(supplier_variant_id=line.supplier_variant_id, quantity=line.quantity) for line in lines],
                destination_country=destination_country,
            )
        except Exception as exc:
            logger.warning("Freight quote request failed", error=str(exc))
            return None

        price = select_freight_price(options)
        logger.info(
            "Freight quote selected",
            price=price,
            options=[(o.logistic_name, o.price) for o in options],
        )
        return price

    return quote_freight
