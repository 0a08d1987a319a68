"""Shipping cost resolution: rule configuration and the resolver cascade."""

from shipping.config import DEFAULT_SHIPPING_CONFIG, ShippingConfig, WeightTier
from shipping.resolver import (
    CartLine,
    FreightLine,
    ShippingMethod,
    ShippingQuote,
    resolve_shipping_cost,
    shipping_label,
)

__all__ = [
    "DEFAULT_SHIPPING_CONFIG",
    "CartLine",
    "FreightLine",
    "ShippingConfig",
    "ShippingMethod",
    "ShippingQuote",
    "WeightTier",
    "resolve_shipping_cost",
    "shipping_label",
]
