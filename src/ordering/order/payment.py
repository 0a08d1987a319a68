"""Order payment — commands and handler.

``ConfirmPayment`` applies a completed checkout session in one unit of work:
the order is marked paid, its composition is classified, discount usage is
counted and the confirmation email is queued in the outbox. Every step is
guarded, so a redelivered event changes nothing.
"""

import json

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.catalog.entry import catalog_entries_for
from ordering.discount.discount import DiscountCode, find_discount_code
from ordering.domain import ordering
from ordering.notification.notification import NotificationType
from ordering.notification.outbox import queue_notification
from ordering.order.downloads import download_links
from ordering.order.order import Composition, Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    payment_session_id = String(max_length=255)
    payment_intent_id = String(max_length=255)
    email = String(max_length=254)
    customer_name = String(max_length=255)
    shipping_address = Text()  # JSON: address dict
    discount_code = String(max_length=100)
    is_all_digital = Boolean(default=False)


@ordering.command(part_of="Order")
class ExpirePayment:
    order_id = Identifier(required=True)


def _digital_variant_ids(order: Order, is_all_digital: bool) -> set[str]:
    """Variant ids of the order's digital items, judged by the catalog.

    When none of the items can be found in the catalog, the checkout
    session's own all-digital flag decides.
    """
    variant_ids = {str(item.variant_id) for item in order.items or []}
    catalog = catalog_entries_for(variant_ids)
    if not catalog:
        logger.warning(
            "No order items found in catalog, using checkout flag for composition",
            order_number=order.order_number,
            is_all_digital=is_all_digital,
        )
        return variant_ids if is_all_digital else set()
    return {variant_id for variant_id, entry in catalog.items() if entry.is_digital}


def _confirmation_context(order: Order, customer_name: str | None, digital_ids: set[str]) -> dict:
    try:
        links = download_links(order, digital_ids)
    except RuntimeError as exc:
        logger.error("Download links unavailable", order_number=order.order_number, error=str(exc))
        links = []

    return {
        "order_number": order.order_number,
        "customer_name": customer_name,
        "items": order.items_summary(digital_ids),
        "subtotal": order.subtotal,
        "discount_amount": order.discount_amount,
        "shipping_cost": order.shipping_cost,
        "total": order.total,
        "shipping_address": order.address_dict(),
        "download_links": links,
        "has_physical_items": order.composition != Composition.DIGITAL.value,
    }


def _record_discount_usage(order: Order, code: str | None) -> bool:
    code = order.discount_code or code
    if not code:
        return False

    discount = find_discount_code(code)
    if discount is None:
        logger.warning("Discount code on paid order not found", order_number=order.order_number, code=code)
        return False

    recorded = discount.record_usage(
        order_id=str(order.id),
        order_number=order.order_number,
        discount_amount=order.discount_amount or 0.0,
        order_subtotal=order.subtotal or 0.0,
        order_total=order.total or 0.0,
    )
    if recorded:
        current_domain.repository_for(DiscountCode).add(discount)
    return recorded


@ordering.command_handler(part_of=Order)
class PaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command: ConfirmPayment) -> dict:
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        address = json.loads(command.shipping_address) if command.shipping_address else None
        newly_paid = order.mark_paid(
            payment_session_id=command.payment_session_id,
            payment_intent_id=command.payment_intent_id,
            email=command.email,
            shipping_address=address,
        )

        digital_ids = _digital_variant_ids(order, bool(command.is_all_digital))
        composition = order.determine_composition(digital_ids)
        if composition != Composition.PHYSICAL.value:
            order.deliver_digital_items()

        discount_recorded = _record_discount_usage(order, command.discount_code)

        notification_id = None
        if not order.email:
            logger.warning("Paid order has no email, confirmation not queued", order_number=order.order_number)
        elif order.mark_confirmation_queued():
            notification_id = queue_notification(
                order_id=str(order.id),
                notification_type=NotificationType.ORDER_CONFIRMATION.value,
                recipient=order.email,
                context=_confirmation_context(order, command.customer_name, digital_ids),
            )

        repo.add(order)

        logger.info(
            "Payment confirmed" if newly_paid else "Payment already confirmed",
            order_id=str(order.id),
            order_number=order.order_number,
            composition=composition,
            fulfillment_status=order.fulfillment_status,
            discount_recorded=discount_recorded,
        )
        return {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "composition": composition,
            "newly_paid": newly_paid,
            "notification_id": notification_id,
        }

    @handle(ExpirePayment)
    def expire_payment(self, command: ExpirePayment) -> bool:
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        expired = order.expire()
        if expired:
            repo.add(order)
        logger.info(
            "Checkout session expired",
            order_id=str(order.id),
            order_number=order.order_number,
            cancelled=expired,
        )
        return expired
