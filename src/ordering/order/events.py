"""Domain events for the Order aggregate.

Every Order mutation raises one of these versioned, immutable facts.
They feed the notification outbox dispatcher and downstream consumers.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order was priced at checkout and is awaiting payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    email = String()
    items = Text(required=True)  # JSON: list of item dicts
    subtotal = Float(required=True)
    shipping_cost = Float(required=True)
    shipping_method = String()
    discount_code = String()
    discount_amount = Float()
    total = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """The payment provider confirmed payment for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_session_id = String()
    payment_intent_id = String()
    email = String()
    has_shipping_address = Boolean(default=False)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderExpired:
    """The checkout session expired before payment; the order is cancelled."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    expired_at = DateTime(required=True)


@ordering.event(part_of="Order")
class CompositionDetermined:
    """The order's digital/physical make-up was resolved from the catalog."""

    __version__ = 1

    order_id = Identifier(required=True)
    composition = String(required=True)
    digital_items = Integer(required=True)
    physical_items = Integer(required=True)


@ordering.event(part_of="Order")
class FulfillmentAdvanced:
    """The fulfillment status moved forward."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    advanced_at = DateTime(required=True)


@ordering.event(part_of="Order")
class DigitalItemsDelivered:
    """The order's digital items became downloadable."""

    __version__ = 1

    order_id = Identifier(required=True)
    all_digital = Boolean(required=True)
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class SupplierDispatchClaimed:
    """A dispatcher took the exclusive right to place the supplier order."""

    __version__ = 1

    order_id = Identifier(required=True)
    claim_token = String(required=True)
    claimed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class SupplierOrderPlaced:
    """The supplier accepted the order's fulfillable items."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    supplier_order_id = String(required=True)
    supplier_order_number = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class SupplierDispatchFailed:
    """The supplier call failed; the error is recorded on the order's notes."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    error = String(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ManualFulfillmentRequired:
    """Some or all physical items cannot be fulfilled by the supplier."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    unfulfillable_items = Integer(required=True)
    reason = String(required=True)
    flagged_at = DateTime(required=True)


@ordering.event(part_of="Order")
class TrackingUpdated:
    """Supplier tracking data was pulled into the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    tracking_number = String()
    tracking_url = String()
    carrier = String()
    supplier_status = String()
    fulfillment_status = String(required=True)
    updated_at = DateTime(required=True)
