"""Payment Event Processor — applies verified payment-provider events to orders.

The webhook route verifies the signature first; this processor only ever
sees authentic events. Handled kinds:

- ``checkout.session.completed``: confirm payment, queue the confirmation
  email, then hand physical items to the supplier dispatcher
- ``checkout.session.expired``: cancel a still-pending order

Anything else is acknowledged and ignored. Each state change is committed
before the next external call, and email or supplier failures never turn
into a failed event.
"""

import json

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.notification.outbox import try_deliver
from ordering.order.dispatch import SupplierDispatcher
from ordering.order.order import Composition
from ordering.order.payment import ConfirmPayment, ExpirePayment

logger = structlog.get_logger(__name__)

SESSION_COMPLETED = "checkout.session.completed"
SESSION_EXPIRED = "checkout.session.expired"

# Metadata keys the storefront may use for the internal order id
_ORDER_ID_KEYS = ("order_id", "supabase_order_id")


def _metadata(session: dict) -> dict:
    return session.get("metadata") or {}


def order_id_from(session: dict) -> str:
    metadata = _metadata(session)
    for key in _ORDER_ID_KEYS:
        if metadata.get(key):
            return str(metadata[key])
    raise ValidationError({"order_id": ["Payment event carries no order id in its metadata"]})


def shipping_address_from(session: dict) -> dict | None:
    """Buyer address from ``shipping_details``, else ``customer_details``."""
    customer = session.get("customer_details") or {}
    shipping = (
        session.get("shipping_details")
        or (session.get("collected_information") or {}).get("shipping_details")
        or {}
    )
    address = shipping.get("address") or customer.get("address")
    if not address:
        return None

    return {
        "name": shipping.get("name") or customer.get("name"),
        "line1": address.get("line1"),
        "line2": address.get("line2"),
        "city": address.get("city"),
        "state": address.get("state"),
        "postal_code": address.get("postal_code"),
        "country": address.get("country"),
        "phone": shipping.get("phone") or customer.get("phone"),
    }


class PaymentEventProcessor:
    def __init__(self, dispatcher: SupplierDispatcher | None = None):
        self.dispatcher = dispatcher or SupplierDispatcher()

    def handle(self, event: dict) -> dict:
        event_type = event.get("type")
        session = (event.get("data") or {}).get("object") or {}

        if event_type == SESSION_COMPLETED:
            return self.complete(session)
        if event_type == SESSION_EXPIRED:
            return self.expire(session)

        logger.info("Ignoring payment event", event_type=event_type, event_id=event.get("id"))
        return {"status": "ignored", "event_type": event_type}

    def complete(self, session: dict) -> dict:
        order_id = order_id_from(session)
        metadata = _metadata(session)
        customer = session.get("customer_details") or {}
        address = shipping_address_from(session)

        try:
            outcome = current_domain.process(
                ConfirmPayment(
                    order_id=order_id,
                    payment_session_id=session.get("id"),
                    payment_intent_id=session.get("payment_intent"),
                    email=customer.get("email") or session.get("customer_email"),
                    customer_name=(address or {}).get("name") or customer.get("name"),
                    shipping_address=json.dumps(address) if address else None,
                    discount_code=metadata.get("discount_code") or None,
                    is_all_digital=str(metadata.get("is_all_digital", "")).lower() == "true",
                ),
                asynchronous=False,
            )
        except ValidationError as exc:
            if "payment_status" not in exc.messages:
                raise
            logger.warning("Completed payment for an expired order ignored", order_id=order_id)
            return {"status": "ignored", "order_id": order_id, "reason": "Order expired"}

        try_deliver(outcome["notification_id"])

        dispatch = None
        if outcome["composition"] != Composition.DIGITAL.value:
            dispatch = self.dispatcher.dispatch(order_id)
            if not dispatch.success:
                logger.error(
                    "Supplier dispatch failed after payment",
                    order_number=outcome["order_number"],
                    message=dispatch.message,
                )

        logger.info(
            "Payment completed event processed",
            order_number=outcome["order_number"],
            composition=outcome["composition"],
            newly_paid=outcome["newly_paid"],
        )
        return {
            "status": "processed",
            "order_id": order_id,
            "composition": outcome["composition"],
            "dispatch": dispatch.to_dict() if dispatch else None,
        }

    def expire(self, session: dict) -> dict:
        order_id = order_id_from(session)
        cancelled = current_domain.process(ExpirePayment(order_id=order_id), asynchronous=False)
        return {"status": "processed" if cancelled else "ignored", "order_id": order_id}
