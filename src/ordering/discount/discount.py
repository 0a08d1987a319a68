"""DiscountCode aggregate (CQRS) — promo codes and their usage ledger.

A code is applied at checkout (pricing) and redeemed once the order is paid.
Redemption is recorded per order id, so a replayed payment event can never
count the same order twice. Influencer codes also accrue a payout per use.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.discount.events import DiscountCodeCreated, DiscountCodeRedeemed
from ordering.domain import ordering


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CodeType(Enum):
    STANDARD = "standard"
    INFLUENCER = "influencer"


class PayoutStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    PAID = "paid"


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


@ordering.entity(part_of="DiscountCode")
class DiscountUsage:
    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    discount_amount = Float(default=0.0)
    order_subtotal = Float(default=0.0)
    order_total = Float(default=0.0)
    influencer_payout = Float(default=0.0)
    payout_status = String(choices=PayoutStatus, default=PayoutStatus.NONE.value)
    used_at = DateTime()


@ordering.aggregate
class DiscountCode:
    code = String(required=True, max_length=50, unique=True)
    discount_type = String(choices=DiscountType, default=DiscountType.FIXED.value)
    value = Float(required=True, min_value=0.0)
    min_order_amount = Float(default=0.0)
    active = Boolean(default=True)

    code_type = String(choices=CodeType, default=CodeType.STANDARD.value)
    payout_per_use = Float(default=0.0)
    payout_percent = Float(default=0.0)

    times_used = Integer(default=0)
    total_revenue = Float(default=0.0)
    total_discount = Float(default=0.0)
    usages = HasMany(DiscountUsage)

    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        code: str,
        value: float,
        discount_type: str = DiscountType.FIXED.value,
        min_order_amount: float = 0.0,
        code_type: str = CodeType.STANDARD.value,
        payout_per_use: float = 0.0,
        payout_percent: float = 0.0,
    ):
        code = normalize_code(code)
        if not code:
            raise ValidationError({"code": ["Discount code is required"]})
        if discount_type == DiscountType.PERCENTAGE.value and value > 100:
            raise ValidationError({"value": ["Percentage discounts cannot exceed 100"]})

        now = datetime.now(UTC)
        discount = cls(
            code=code,
            value=value,
            discount_type=discount_type,
            min_order_amount=min_order_amount,
            code_type=code_type,
            payout_per_use=payout_per_use,
            payout_percent=payout_percent,
            created_at=now,
            updated_at=now,
        )
        discount.raise_(
            DiscountCodeCreated(
                discount_code_id=str(discount.id),
                code=code,
                discount_type=discount_type,
                value=value,
                code_type=code_type,
                created_at=now,
            )
        )
        return discount

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def discount_for(self, subtotal: float) -> float:
        """Amount this code takes off ``subtotal``; 0 when it does not apply."""
        if not self.active or subtotal < (self.min_order_amount or 0):
            return 0.0
        if self.discount_type == DiscountType.PERCENTAGE.value:
            amount = subtotal * self.value / 100
        else:
            amount = self.value
        return round(min(max(0.0, amount), subtotal), 2)

    # -------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------
    def has_usage_for(self, order_id: str) -> bool:
        return any(str(u.order_id) == str(order_id) for u in self.usages or [])

    def influencer_payout_for(self, order_subtotal: float) -> float:
        if self.code_type != CodeType.INFLUENCER.value:
            return 0.0
        if self.payout_per_use and self.payout_per_use > 0:
            return round(self.payout_per_use, 2)
        if self.payout_percent and self.payout_percent > 0:
            return round(order_subtotal * self.payout_percent / 100, 2)
        return 0.0

    def record_usage(
        self,
        order_id: str,
        order_number: str | None,
        discount_amount: float,
        order_subtotal: float,
        order_total: float,
    ) -> bool:
        """Count one redemption for ``order_id``. Returns False if already counted."""
        if self.has_usage_for(order_id):
            return False

        now = datetime.now(UTC)
        payout = self.influencer_payout_for(order_subtotal)
        self.add_usages(
            DiscountUsage(
                order_id=order_id,
                order_number=order_number,
                discount_amount=discount_amount,
                order_subtotal=order_subtotal,
                order_total=order_total,
                influencer_payout=payout,
                payout_status=PayoutStatus.PENDING.value if payout > 0 else PayoutStatus.NONE.value,
                used_at=now,
            )
        )
        self.times_used = (self.times_used or 0) + 1
        self.total_revenue = round((self.total_revenue or 0) + order_total, 2)
        self.total_discount = round((self.total_discount or 0) + discount_amount, 2)
        self.updated_at = now

        self.raise_(
            DiscountCodeRedeemed(
                discount_code_id=str(self.id),
                code=self.code,
                order_id=order_id,
                order_number=order_number,
                discount_amount=discount_amount,
                influencer_payout=payout,
                times_used=self.times_used,
                redeemed_at=now,
            )
        )
        return True


def find_discount_code(code: str | None) -> DiscountCode | None:
    """Look up a code case-insensitively; None when missing."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    repo = current_domain.repository_for(DiscountCode)
    match = repo._dao.query.filter(code=normalized).all().first
    return repo.get(match.id) if match is not None else None
