"""Shipping rule configuration.

The resolver never reads global settings: callers pass a ``ShippingConfig``
explicitly. ``DEFAULT_SHIPPING_CONFIG`` holds the store defaults and
``ShippingConfig.from_dict`` merges an admin-edited override on top of them,
clamping every numeric knob to a non-negative value.
"""

from dataclasses import asdict, dataclass, field, fields, replace

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WeightTier:
    """A price bracket keyed by the maximum item weight it covers.

    ``max_grams=None`` marks the unbounded tier, which must sort last.
    """

    max_grams: int | None
    price: float

    def covers(self, weight_grams: float) -> bool:
        return self.max_grams is None or weight_grams <= self.max_grams


DEFAULT_WEIGHT_TIERS = (
    WeightTier(max_grams=500, price=4.99),
    WeightTier(max_grams=1000, price=6.99),
    WeightTier(max_grams=2000, price=8.99),
    WeightTier(max_grams=5000, price=12.99),
    WeightTier(max_grams=None, price=19.99),
)


def _validate_tiers(tiers) -> tuple[WeightTier, ...]:
    unbounded = [t for t in tiers if t.max_grams is None]
    if len(unbounded) != 1:
        raise ValueError("Weight tier table must contain exactly one unbounded tier")
    bounded = sorted((t for t in tiers if t.max_grams is not None), key=lambda t: t.max_grams)
    return (*bounded, unbounded[0])


@dataclass(frozen=True)
class ShippingConfig:
    """Explicit options struct for ``resolve_shipping_cost``."""

    free_shipping_enabled: bool = True
    free_shipping_threshold: float = 50.0
    free_shipping_weight_cap_grams: int = 10000

    use_supplier_quotes: bool = True
    quote_markup_percent: float = 15.0
    minimum_charge: float = 2.99

    weight_tiers: tuple[WeightTier, ...] = field(default=DEFAULT_WEIGHT_TIERS)
    unknown_weight_rate: float = 8.99
    flat_rate: float = 4.99

    def __post_init__(self):
        object.__setattr__(self, "weight_tiers", _validate_tiers(self.weight_tiers))

    def tier_price(self, weight_grams: float) -> float:
        """Price of the first tier that covers ``weight_grams``."""
        for tier in self.weight_tiers:
            if tier.covers(weight_grams):
                return tier.price
        # Unreachable: the unbounded tier covers everything
        return self.weight_tiers[-1].price

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    def to_dict(self) -> dict:
        data = asdict(self)
        data["weight_tiers"] = [asdict(t) for t in self.weight_tiers]
        return data

    @classmethod
    def from_dict(cls, data: dict | None, base: "ShippingConfig | None" = None) -> "ShippingConfig":
        """Merge ``data`` over ``base`` (defaults when omitted).

        Unknown keys are ignored. Numbers are clamped with ``max(0, value)``.
        A malformed tier table is rejected with ``ValueError``.
        """
        base = base or DEFAULT_SHIPPING_CONFIG
        if not data:
            return base

        changes = {}
        for key in ("free_shipping_enabled", "use_supplier_quotes"):
            if key in data and data[key] is not None:
                changes[key] = bool(data[key])

        for key in (
            "free_shipping_threshold",
            "quote_markup_percent",
            "minimum_charge",
            "unknown_weight_rate",
            "flat_rate",
        ):
            if key in data and data[key] is not None:
                changes[key] = max(0.0, float(data[key]))

        if data.get("free_shipping_weight_cap_grams") is not None:
            changes["free_shipping_weight_cap_grams"] = max(0, int(data["free_shipping_weight_cap_grams"]))

        if data.get("weight_tiers"):
            changes["weight_tiers"] = tuple(
                WeightTier(
                    max_grams=None if t.get("max_grams") is None else max(0, int(t["max_grams"])),
                    price=max(0.0, float(t.get("price", 0))),
                )
                for t in data["weight_tiers"]
            )

        ignored = set(data) - {f.name for f in fields(cls)}
        if ignored:
            logger.debug("Ignoring unknown shipping config keys", keys=sorted(ignored))

        return replace(base, **changes)


DEFAULT_SHIPPING_CONFIG = ShippingConfig()
