"""CreateDiscountCode command + handler."""

from protean import handle
from protean.fields import Float, String
from protean.utils.globals import current_domain

from ordering.discount.discount import CodeType, DiscountCode, DiscountType
from ordering.domain import ordering


@ordering.command(part_of="DiscountCode")
class CreateDiscountCode:
    code = String(required=True, max_length=50)
    value = Float(required=True, min_value=0.0)
    discount_type = String(choices=DiscountType, default=DiscountType.FIXED.value)
    min_order_amount = Float(default=0.0)
    code_type = String(choices=CodeType, default=CodeType.STANDARD.value)
    payout_per_use = Float(default=0.0)
    payout_percent = Float(default=0.0)


@ordering.command_handler(part_of=DiscountCode)
class DiscountCodeHandler:
    @handle(CreateDiscountCode)
    def create_discount_code(self, command: CreateDiscountCode) -> str:
        discount = DiscountCode.create(
            code=command.code,
            value=command.value,
            discount_type=command.discount_type,
            min_order_amount=command.min_order_amount,
            code_type=command.code_type,
            payout_per_use=command.payout_per_use,
            payout_percent=command.payout_percent,
        )
        current_domain.repository_for(DiscountCode).add(discount)
        return str(discount.id)
