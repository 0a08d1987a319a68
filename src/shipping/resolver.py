"""Shipping Cost Resolver — picks the shipping charge for a priced cart.

Resolution cascade (first applicable rule wins):
    1. every item digital            → 0.00, "free"      (Digital Delivery)
    2. free shipping threshold met   → 0.00, "free"      unless a physical item exceeds the weight cap
    3. supplier freight quote        → max(quote × (1 + markup%), minimum), "supplier_quote"
    4. heaviest known weight         → tier price, raised to the unknown-weight rate if needed
    5. no known weights              → unknown-weight rate, "unknown_weight"
    6. last resort                   → flat rate, "flat_rate"

The only I/O is the supplier quote in step 3, which is injected as
``quote_freight`` so the rest of the cascade stays deterministic.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

import structlog

from shipping.config import ShippingConfig

logger = structlog.get_logger(__name__)


class ShippingMethod(Enum):
    FREE = "free"
    SUPPLIER_QUOTE = "supplier_quote"
    WEIGHT_TIER = "weight_tier"
    UNKNOWN_WEIGHT = "unknown_weight"
    FLAT_RATE = "flat_rate"


DIGITAL_DELIVERY_LABEL = "Digital Delivery"
FREE_SHIPPING_LABEL = "Free Shipping"


@dataclass(frozen=True)
class CartLine:
    """A priced cart line as seen by the resolver."""

    quantity: int
    unit_price: float
    is_digital: bool = False
    supplier_variant_id: str | None = None
    weight_grams: float | None = None
    warehouse: str | None = None


@dataclass(frozen=True)
class FreightLine:
    """A supplier-fulfillable line sent to the freight quote."""

    supplier_variant_id: str
    quantity: int


@dataclass(frozen=True)
class ShippingQuote:
    cost: float
    method: str
    label: str
    unknown_weight_items: int = 0


QuoteFreight = Callable[[list[FreightLine]], float | None]


def shipping_label(items: Iterable[CartLine]) -> str:
    """Customer-facing label derived from the physical items' warehouses."""
    warehouses = {(i.warehouse or "").upper() for i in items if not i.is_digital}
    if not warehouses:
        return DIGITAL_DELIVERY_LABEL
    if warehouses == {"US"}:
        return "Fast US Shipping"
    if "US" in warehouses:
        return "Mixed Shipping"
    return "Standard Shipping"


def _money(amount: float) -> float:
    return round(amount + 1e-9, 2)


def resolve_shipping_cost(
    items: list[CartLine],
    subtotal: float,
    config: ShippingConfig,
    quote_freight: QuoteFreight | None = None,
) -> ShippingQuote:
    """Resolve the shipping charge for ``items``.

    Args:
        items: Cart lines; digital lines never contribute to physical shipping.
        subtotal: Merchandise subtotal the free-shipping threshold is tested against.
        config: Shipping rules.
        quote_freight: Optional callable returning the supplier's freight price
            for the supplier-fulfillable lines, or ``None`` when unavailable.
    """
    # 1. Digital-only carts have nothing to ship
    physical = [i for i in items if not i.is_digital]
    if not physical:
        return ShippingQuote(cost=0.0, method=ShippingMethod.FREE.value, label=DIGITAL_DELIVERY_LABEL)

    label = shipping_label(physical)
    known = [i for i in physical if i.weight_grams is not None]
    unknown_count = len(physical) - len(known)

    # 2. Free shipping over the threshold, unless a proven-heavy item blocks it
    if config.free_shipping_enabled and subtotal >= config.free_shipping_threshold:
        cap = config.free_shipping_weight_cap_grams
        over_cap = [i for i in known if cap > 0 and i.weight_grams > cap]
        if not over_cap:
            if unknown_count and cap > 0:
                logger.warning(
                    "Free shipping granted with unknown item weights",
                    unknown_weight_items=unknown_count,
                    weight_cap_grams=cap,
                )
            return ShippingQuote(
                cost=0.0,
                method=ShippingMethod.FREE.value,
                label=FREE_SHIPPING_LABEL,
                unknown_weight_items=unknown_count,
            )
        logger.info(
            "Free shipping blocked by weight cap",
            heaviest_grams=max(i.weight_grams for i in over_cap),
            weight_cap_grams=cap,
        )

    # 3. Real-time supplier quote
    if config.use_supplier_quotes and quote_freight is not None:
        lines = [
            FreightLine(supplier_variant_id=i.supplier_variant_id, quantity=i.quantity)
            for i in physical
            if i.supplier_variant_id
        ]
        if lines:
            quote = _safe_quote(quote_freight, lines)
            if quote is not None and quote > 0:
                cost = max(quote * (1 + config.quote_markup_percent / 100), config.minimum_charge)
                return ShippingQuote(
                    cost=_money(cost),
                    method=ShippingMethod.SUPPLIER_QUOTE.value,
                    label=label,
                    unknown_weight_items=unknown_count,
                )

    # 4. Heaviest known item's tier; unknown items may be heavier
    if known:
        heaviest = max(i.weight_grams for i in known)
        cost = config.tier_price(heaviest)
        if unknown_count:
            cost = max(cost, config.unknown_weight_rate)
        return ShippingQuote(
            cost=_money(cost),
            method=ShippingMethod.WEIGHT_TIER.value,
            label=label,
            unknown_weight_items=unknown_count,
        )

    # 5. Nothing weighed
    if config.unknown_weight_rate > 0:
        return ShippingQuote(
            cost=_money(config.unknown_weight_rate),
            method=ShippingMethod.UNKNOWN_WEIGHT.value,
            label=label,
            unknown_weight_items=unknown_count,
        )

    # 6. Flat rate
    return ShippingQuote(
        cost=_money(config.flat_rate),
        method=ShippingMethod.FLAT_RATE.value,
        label=label,
        unknown_weight_items=unknown_count,
    )


def _safe_quote(quote_freight: QuoteFreight, lines: list[FreightLine]) -> float | None:
    try:
        return quote_freight(lines)
    except Exception as exc:
        # A failed quote falls through to the weight tiers
        logger.warning("Supplier freight quote failed", error=str(exc), lines=len(lines))
        return None
