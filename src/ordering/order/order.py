"""Order aggregate (CQRS) — the unit of checkout and fulfillment.

An Order is created at checkout with its shipping cost already resolved, then
mutated only by payment events, the supplier dispatcher and the tracking
reconciliation job. It is never deleted.

Payment:      pending → paid
              pending → expired   (also cancels fulfillment)

Fulfillment:  unfulfilled → processing → shipped → delivered   (forward only)
              unfulfilled → cancelled                          (payment expiry only)

Requests to move fulfillment backwards are ignored, never applied. A supplier
order id is assigned at most once.
"""

import json
import random
import string
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    CompositionDetermined,
    DigitalItemsDelivered,
    FulfillmentAdvanced,
    ManualFulfillmentRequired,
    OrderExpired,
    OrderPaid,
    OrderPlaced,
    SupplierDispatchClaimed,
    SupplierDispatchFailed,
    SupplierOrderPlaced,
    TrackingUpdated,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    EXPIRED = "expired"


class FulfillmentStatus(Enum):
    UNFULFILLED = "unfulfilled"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Composition(Enum):
    DIGITAL = "digital"
    MIXED = "mixed"
    PHYSICAL = "physical"


# Position along the forward-only path; CANCELLED sits outside it
_FULFILLMENT_RANK = {
    FulfillmentStatus.UNFULFILLED: 0,
    FulfillmentStatus.PROCESSING: 1,
    FulfillmentStatus.SHIPPED: 2,
    FulfillmentStatus.DELIVERED: 3,
}

_TERMINAL_FULFILLMENT = {FulfillmentStatus.DELIVERED, FulfillmentStatus.CANCELLED}

ORDER_NUMBER_PREFIX = "MI"


def generate_order_number(now: datetime | None = None) -> str:
    """``MI-<epoch millis>-<6 random chars>``."""
    now = now or datetime.now(UTC)
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"{ORDER_NUMBER_PREFIX}-{int(now.timestamp() * 1000)}-{suffix}"


def _stamp(message: str, now: datetime, source: str) -> str:
    return f"[{source}] {now.isoformat()} {message}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Buyer-provided shipping address captured from the payment provider.

    Every field is optional: the provider may send a partial address, and the
    supplier dispatcher decides how to handle the gaps.
    """

    name = String(max_length=255)
    line1 = String(max_length=255)
    line2 = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)
    phone = String(max_length=50)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A purchased catalog variant.

    Whether an item is digital is not stored; it is derived from the catalog
    entry's download file. ``supplier_variant_id``, ``weight_grams`` and
    ``warehouse`` are snapshots taken at checkout.
    """

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    supplier_variant_id = String(max_length=100)
    weight_grams = Float()
    warehouse = String(max_length=10)

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    email = String(max_length=254)

    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    fulfillment_status = String(choices=FulfillmentStatus, default=FulfillmentStatus.UNFULFILLED.value)
    composition = String(choices=Composition)

    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)

    # Money
    subtotal = Float(default=0.0)
    shipping_cost = Float(default=0.0)
    shipping_method = String(max_length=50)
    shipping_label = String(max_length=100)
    discount_code = String(max_length=100)
    discount_amount = Float(default=0.0)
    total = Float(default=0.0)

    # Payment provider
    payment_session_id = String(max_length=255)
    payment_intent_id = String(max_length=255)

    # Supplier
    supplier_order_id = String(max_length=100)
    supplier_order_number = String(max_length=100)
    supplier_dispatch_claim = String(max_length=64)
    supplier_dispatch_claimed_at = DateTime()
    tracking_number = String(max_length=100)
    tracking_url = String(max_length=500)
    carrier = String(max_length=100)
    supplier_status = String(max_length=100)

    # Operational annotation: set on failure, cleared on success
    notes = Text()

    # Idempotency guards
    email_sent_at = DateTime()
    shipping_email_sent_at = DateTime()
    digital_delivered_at = DateTime()

    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        items_data: list[dict],
        subtotal: float,
        shipping_cost: float,
        total: float,
        email: str | None = None,
        shipping_method: str | None = None,
        shipping_label: str | None = None,
        discount_code: str | None = None,
        discount_amount: float = 0.0,
        order_number: str | None = None,
    ):
        """Create an order in ``pending/unfulfilled`` with pricing locked in."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number or generate_order_number(now),
            email=email,
            payment_status=PaymentStatus.PENDING.value,
            fulfillment_status=FulfillmentStatus.UNFULFILLED.value,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            shipping_method=shipping_method,
            shipping_label=shipping_label,
            discount_code=discount_code,
            discount_amount=discount_amount,
            total=total,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                email=email,
                items=json.dumps(items_data),
                subtotal=subtotal,
                shipping_cost=shipping_cost,
                shipping_method=shipping_method,
                discount_code=discount_code,
                discount_amount=discount_amount,
                total=total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    @property
    def has_supplier_order(self) -> bool:
        return bool(self.supplier_order_id)

    def can_advance_to(self, target: FulfillmentStatus) -> bool:
        """True when ``target`` lies strictly ahead on the forward path."""
        current = FulfillmentStatus(self.fulfillment_status)
        if current in _TERMINAL_FULFILLMENT or target == FulfillmentStatus.CANCELLED:
            return False
        return _FULFILLMENT_RANK[target] > _FULFILLMENT_RANK[current]

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def mark_paid(
        self,
        payment_session_id: str | None = None,
        payment_intent_id: str | None = None,
        email: str | None = None,
        shipping_address: dict | None = None,
    ) -> bool:
        """Record a completed payment. Returns False when already paid."""
        current = PaymentStatus(self.payment_status)
        if current == PaymentStatus.PAID:
            return False
        if current == PaymentStatus.EXPIRED:
            raise ValidationError({"payment_status": ["Cannot confirm payment for an expired order"]})

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_session_id = payment_session_id or self.payment_session_id
        self.payment_intent_id = payment_intent_id or self.payment_intent_id
        if email:
            self.email = email
        if shipping_address:
            self.shipping_address = ShippingAddress(**shipping_address)
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_session_id=self.payment_session_id,
                payment_intent_id=self.payment_intent_id,
                email=self.email,
                has_shipping_address=self.shipping_address is not None,
                paid_at=now,
            )
        )
        return True

    def expire(self) -> bool:
        """Cancel an unpaid order whose checkout session expired.

        Only a pending payment can expire; anything else is left untouched.
        """
        if PaymentStatus(self.payment_status) != PaymentStatus.PENDING:
            return False
        if FulfillmentStatus(self.fulfillment_status) != FulfillmentStatus.UNFULFILLED:
            return False

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.EXPIRED.value
        self.fulfillment_status = FulfillmentStatus.CANCELLED.value
        self.updated_at = now
        self.raise_(
            OrderExpired(
                order_id=str(self.id),
                order_number=self.order_number,
                expired_at=now,
            )
        )
        return True

    def determine_composition(self, digital_variant_ids: set[str]) -> str:
        """Classify the order as digital, mixed or physical."""
        digital = sum(1 for item in self.items or [] if str(item.variant_id) in digital_variant_ids)
        physical = len(self.items or []) - digital
        if physical == 0:
            composition = Composition.DIGITAL
        elif digital == 0:
            composition = Composition.PHYSICAL
        else:
            composition = Composition.MIXED

        if self.composition != composition.value:
            self.composition = composition.value
            self.raise_(
                CompositionDetermined(
                    order_id=str(self.id),
                    composition=composition.value,
                    digital_items=digital,
                    physical_items=physical,
                )
            )
        return composition.value

    # -------------------------------------------------------------------
    # Fulfillment status
    # -------------------------------------------------------------------
    def advance_fulfillment(self, target: FulfillmentStatus) -> bool:
        """Move fulfillment forward. Regressions are ignored and return False."""
        if not self.is_paid:
            raise ValidationError({"payment_status": ["Fulfillment cannot advance before payment"]})
        if not self.can_advance_to(target):
            return False

        now = datetime.now(UTC)
        previous = self.fulfillment_status
        self.fulfillment_status = target.value
        self.updated_at = now
        self.raise_(
            FulfillmentAdvanced(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                new_status=target.value,
                advanced_at=now,
            )
        )
        return True

    def deliver_digital_items(self) -> None:
        """Stamp digital items as deliverable.

        An all-digital order is complete at this point and moves straight to
        ``delivered``; a mixed order keeps waiting on its physical items.
        """
        if self.digital_delivered_at is not None:
            return

        now = datetime.now(UTC)
        all_digital = self.composition == Composition.DIGITAL.value
        self.digital_delivered_at = now
        self.updated_at = now
        self.raise_(
            DigitalItemsDelivered(
                order_id=str(self.id),
                all_digital=all_digital,
                delivered_at=now,
            )
        )
        if all_digital:
            self.advance_fulfillment(FulfillmentStatus.DELIVERED)
            self.notes = _stamp("Digital order delivered instantly", now, "digital")

    # -------------------------------------------------------------------
    # Supplier dispatch
    # -------------------------------------------------------------------
    def claim_supplier_dispatch(self, claim_token: str) -> bool:
        """Take the exclusive right to place the supplier order.

        Returns False when a supplier order exists or another dispatcher
        already holds the claim. Persisting the claim relies on the
        repository's version check to reject a concurrent claimant.
        """
        if self.has_supplier_order or self.supplier_dispatch_claim:
            return False

        now = datetime.now(UTC)
        self.supplier_dispatch_claim = claim_token
        self.supplier_dispatch_claimed_at = now
        self.updated_at = now
        self.raise_(
            SupplierDispatchClaimed(
                order_id=str(self.id),
                claim_token=claim_token,
                claimed_at=now,
            )
        )
        return True

    def release_supplier_dispatch(self) -> None:
        self.supplier_dispatch_claim = None
        self.supplier_dispatch_claimed_at = None

    def record_supplier_order(
        self,
        supplier_order_id: str,
        supplier_order_number: str | None = None,
        note: str | None = None,
    ) -> None:
        """Persist the supplier's ids; clears any earlier failure note."""
        if self.has_supplier_order:
            raise ValidationError({"supplier_order_id": ["Supplier order already assigned"]})
        if not supplier_order_id:
            raise ValidationError({"supplier_order_id": ["Supplier order id is required"]})

        now = datetime.now(UTC)
        self.supplier_order_id = supplier_order_id
        self.supplier_order_number = supplier_order_number
        self.notes = _stamp(note, now, "supplier") if note else None
        self.release_supplier_dispatch()
        self.updated_at = now
        self.raise_(
            SupplierOrderPlaced(
                order_id=str(self.id),
                order_number=self.order_number,
                supplier_order_id=supplier_order_id,
                supplier_order_number=supplier_order_number,
                placed_at=now,
            )
        )
        self.advance_fulfillment(FulfillmentStatus.PROCESSING)

    def record_dispatch_failure(self, error: str) -> None:
        """Record a supplier failure on ``notes`` and free the claim for a retry.

        Payment stands, so the order still moves to ``processing`` for a human
        to follow up.
        """
        now = datetime.now(UTC)
        self.notes = _stamp(f"Supplier order failed: {error}", now, "supplier")
        self.release_supplier_dispatch()
        self.updated_at = now
        self.raise_(
            SupplierDispatchFailed(
                order_id=str(self.id),
                order_number=self.order_number,
                error=error,
                failed_at=now,
            )
        )
        self.advance_fulfillment(FulfillmentStatus.PROCESSING)

    def require_manual_fulfillment(self, unfulfillable_items: int, reason: str) -> None:
        """Flag items the supplier cannot fulfill. Status is left untouched."""
        now = datetime.now(UTC)
        self.notes = _stamp(reason, now, "supplier")
        self.updated_at = now
        self.raise_(
            ManualFulfillmentRequired(
                order_id=str(self.id),
                order_number=self.order_number,
                unfulfillable_items=unfulfillable_items,
                reason=reason,
                flagged_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------
    def record_tracking(
        self,
        tracking_number: str | None,
        tracking_url: str | None,
        carrier: str | None,
        supplier_status: str | None,
        target_status: FulfillmentStatus | None,
    ) -> bool:
        """Merge supplier tracking data. Returns True when anything changed.

        Known values are never overwritten with blanks, and the status only
        moves forward.
        """
        changed = False
        newly_tracked = bool(tracking_number) and not self.tracking_number

        for field_name, value in (
            ("tracking_number", tracking_number),
            ("tracking_url", tracking_url),
            ("carrier", carrier),
            ("supplier_status", supplier_status),
        ):
            if value and getattr(self, field_name) != value:
                setattr(self, field_name, value)
                changed = True

        if newly_tracked:
            self.notes = None

        if target_status is not None and self.advance_fulfillment(target_status):
            changed = True

        if changed:
            now = datetime.now(UTC)
            self.updated_at = now
            self.raise_(
                TrackingUpdated(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    tracking_number=self.tracking_number,
                    tracking_url=self.tracking_url,
                    carrier=self.carrier,
                    supplier_status=self.supplier_status,
                    fulfillment_status=self.fulfillment_status,
                    updated_at=now,
                )
            )
        return changed

    # -------------------------------------------------------------------
    # Notification guards
    # -------------------------------------------------------------------
    def mark_confirmation_queued(self) -> bool:
        if self.email_sent_at is not None:
            return False
        self.email_sent_at = datetime.now(UTC)
        return True

    def mark_shipping_notice_queued(self) -> bool:
        if self.shipping_email_sent_at is not None:
            return False
        self.shipping_email_sent_at = datetime.now(UTC)
        return True

    # -------------------------------------------------------------------
    # Serialization helpers
    # -------------------------------------------------------------------
    def address_dict(self) -> dict | None:
        return self.shipping_address.to_dict() if self.shipping_address else None

    def items_summary(self, digital_variant_ids: set[str] | None = None) -> list[dict]:
        digital_variant_ids = digital_variant_ids or set()
        return [
            {
                "item_id": str(item.id),
                "name": item.name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "is_digital": str(item.variant_id) in digital_variant_ids,
            }
            for item in self.items or []
        ]
