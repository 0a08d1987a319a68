"""Domain events for the DiscountCode aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="DiscountCode")
class DiscountCodeCreated:
    __version__ = 1

    discount_code_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    value = Float(required=True)
    code_type = String(required=True)
    created_at = DateTime(required=True)


@ordering.event(part_of="DiscountCode")
class DiscountCodeRedeemed:
    """A paid order used the code. Raised once per order."""

    __version__ = 1

    discount_code_id = Identifier(required=True)
    code = String(required=True)
    order_id = Identifier(required=True)
    order_number = String()
    discount_amount = Float(required=True)
    influencer_payout = Float()
    times_used = Integer(required=True)
    redeemed_at = DateTime(required=True)
