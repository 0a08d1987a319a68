"""Checkout — prices a cart and places the Order awaiting payment.

Prices come from the catalog read model, never from the client. Shipping is
resolved here, once, with the store's current ``ShippingConfig``; the
resulting cost is what the customer is charged.
"""

import json
from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String, Text
from protean.utils.globals import current_domain
from shipping import CartLine, ShippingQuote, resolve_shipping_cost
from supplier import get_supplier
from supplier.freight import freight_quoter

from ordering.catalog.entry import CatalogEntry, catalog_entries_for
from ordering.discount.discount import find_discount_code
from ordering.domain import ordering
from ordering.order.order import Order
from ordering.settings.shipping_settings import load_shipping_config

logger = structlog.get_logger(__name__)


@dataclass
class PricedCart:
    lines: list[tuple[CatalogEntry, int]]
    subtotal: float
    shipping: ShippingQuote

    def items_data(self) -> list[dict]:
        return [
            {
                "product_id": entry.product_id,
                "variant_id": entry.variant_id,
                "name": entry.name,
                "quantity": quantity,
                "unit_price": entry.price,
                "supplier_variant_id": entry.supplier_variant_id,
                "weight_grams": entry.weight_grams,
                "warehouse": entry.warehouse,
            }
            for entry, quantity in self.lines
        ]


def _parse_cart(items) -> list[tuple[str, int]]:
    items = json.loads(items) if isinstance(items, str) else items
    if not items:
        raise ValidationError({"items": ["Cart is empty"]})

    parsed = []
    for item in items:
        variant_id = str(item.get("variant_id") or "")
        quantity = int(item.get("quantity") or 0)
        if not variant_id:
            raise ValidationError({"items": ["Every item needs a variant_id"]})
        if quantity < 1:
            raise ValidationError({"items": [f"Quantity for {variant_id} must be at least 1"]})
        parsed.append((variant_id, quantity))
    return parsed


def price_cart(items, destination_country: str = "US") -> PricedCart:
    """Resolve cart lines against the catalog and compute subtotal and shipping."""
    parsed = _parse_cart(items)
    catalog = catalog_entries_for(variant_id for variant_id, _ in parsed)

    lines = []
    for variant_id, quantity in parsed:
        entry = catalog.get(variant_id)
        if entry is None:
            raise ValidationError({"items": [f"Unknown product variant: {variant_id}"]})
        if not entry.active:
            raise ValidationError({"items": [f"{entry.name} is no longer available"]})
        if not entry.is_digital and entry.stock_count is not None and entry.stock_count < quantity:
            raise ValidationError({"items": [f"{entry.name} is out of stock"]})
        lines.append((entry, quantity))

    subtotal = round(sum(entry.price * quantity for entry, quantity in lines), 2)
    shipping = resolve_shipping_cost(
        [
            CartLine(
                quantity=quantity,
                unit_price=entry.price,
                is_digital=entry.is_digital,
                supplier_variant_id=entry.supplier_variant_id,
                weight_grams=entry.weight_grams,
                warehouse=entry.warehouse,
            )
            for entry, quantity in lines
        ],
        subtotal,
        load_shipping_config(),
        quote_freight=freight_quoter(get_supplier(), destination_country=destination_country),
    )
    return PricedCart(lines=lines, subtotal=subtotal, shipping=shipping)


def discount_for(code: str | None, subtotal: float) -> tuple[str | None, float]:
    """Validate ``code`` against ``subtotal``. Returns (normalized code, amount)."""
    if not code:
        return None, 0.0

    discount = find_discount_code(code)
    if discount is None or not discount.active:
        raise ValidationError({"discount_code": ["Invalid discount code"]})
    if subtotal < (discount.min_order_amount or 0):
        raise ValidationError(
            {"discount_code": [f"Minimum order of ${discount.min_order_amount:.2f} required for this code"]}
        )
    return discount.code, discount.discount_for(subtotal)


@ordering.command(part_of="Order")
class PlaceOrder:
    email = String(max_length=254)
    items = Text(required=True)  # JSON: [{"variant_id": ..., "quantity": ...}]
    discount_code = String(max_length=100)
    shipping_country = String(max_length=2, default="US")


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command: PlaceOrder) -> str:
        cart = price_cart(command.items, destination_country=command.shipping_country or "US")
        code, discount_amount = discount_for(command.discount_code, cart.subtotal)
        total = round(max(0.0, cart.subtotal - discount_amount) + cart.shipping.cost, 2)

        order = Order.place(
            items_data=cart.items_data(),
            subtotal=cart.subtotal,
            shipping_cost=cart.shipping.cost,
            total=total,
            email=command.email,
            shipping_method=cart.shipping.method,
            shipping_label=cart.shipping.label,
            discount_code=code,
            discount_amount=discount_amount,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            subtotal=cart.subtotal,
            shipping_cost=cart.shipping.cost,
            shipping_method=cart.shipping.method,
            discount_amount=discount_amount,
            total=total,
        )
        return str(order.id)
