"""FastAPI routes for the Ordering domain: checkout, payment webhooks and admin operations.

Supplier, email and store calls block. Routes that reach them are plain ``def``
and run in the threadpool; the webhook reads its body asynchronously, then
hands the event to the threadpool.
"""

import hmac
import json
import os
from contextlib import contextmanager

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from payments.webhook import InvalidSignature, get_webhook_verifier
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    CreateDiscountCodeRequest,
    DiscountCodeIdResponse,
    DispatchResponse,
    FulfillOrderRequest,
    NotificationRetryResponse,
    ShippingConfigSchema,
    ShippingEstimateRequest,
    ShippingEstimateResponse,
    TrackingSyncResponse,
    WebhookResponse,
)
from ordering.discount.management import CreateDiscountCode
from ordering.notification.retry import redeliver_failed_notifications
from ordering.order.checkout import PlaceOrder, price_cart
from ordering.order.dispatch import SupplierDispatcher
from ordering.order.downloads import locate_download, verify_download_token
from ordering.order.order import Order
from ordering.order.payment_events import PaymentEventProcessor
from ordering.order.tracking import TrackingReconciliationJob
from ordering.settings.shipping_settings import UpdateShippingSettings, load_shipping_config

logger = structlog.get_logger(__name__)


@contextmanager
def domain_errors():
    """Translate domain exceptions into HTTP errors."""
    try:
        yield
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.messages) from exc


# ---------------------------------------------------------------------------
# Admin authorization
# ---------------------------------------------------------------------------
def _matches(expected: str | None, given: str | None) -> bool:
    return bool(expected) and bool(given) and hmac.compare_digest(expected, given)


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


def require_admin(authorization: str | None = Header(default=None)) -> None:
    if not _matches(os.environ.get("ADMIN_API_TOKEN"), _bearer_token(authorization)):
        raise HTTPException(status_code=401, detail="Unauthorized")


def require_admin_or_cron_key(
    key: str | None = Query(default=None),
    authorization: str | None = Header(default=None),
) -> None:
    if _matches(os.environ.get("TRACKING_SYNC_SECRET"), key):
        return
    require_admin(authorization)


# ---------------------------------------------------------------------------
# Payment webhooks
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/payments", response_model=WebhookResponse)
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
) -> WebhookResponse:
    payload = await request.body()
    try:
        event = get_webhook_verifier().construct_event(payload, stripe_signature or "")
    except InvalidSignature as exc:
        logger.warning("Rejected payment webhook", error=str(exc))
        raise HTTPException(status_code=400, detail=f"Webhook signature verification failed: {exc}") from exc

    with domain_errors():
        result = await run_in_threadpool(PaymentEventProcessor().handle, event)
    return WebhookResponse(
        status=result["status"],
        order_id=result.get("order_id"),
        dispatch=result.get("dispatch"),
    )


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/checkout", status_code=201, response_model=CheckoutResponse)
def checkout(body: CheckoutRequest) -> CheckoutResponse:
    command = PlaceOrder(
        email=body.email,
        items=json.dumps([item.model_dump() for item in body.items]),
        discount_code=body.discount_code,
        shipping_country=body.shipping_country.upper(),
    )
    with domain_errors():
        order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    return CheckoutResponse(
        order_id=order_id,
        order_number=order.order_number,
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        shipping_cost=order.shipping_cost,
        shipping_method=order.shipping_method,
        shipping_label=order.shipping_label,
        total=order.total,
    )


# ---------------------------------------------------------------------------
# Shipping estimate
# ---------------------------------------------------------------------------
shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.post("/estimate", response_model=ShippingEstimateResponse)
def estimate_shipping(body: ShippingEstimateRequest) -> ShippingEstimateResponse:
    with domain_errors():
        cart = price_cart(
            [item.model_dump() for item in body.items],
            destination_country=body.shipping_country.upper(),
        )
    return ShippingEstimateResponse(
        subtotal=cart.subtotal,
        cost=cart.shipping.cost,
        method=cart.shipping.method,
        label=cart.shipping.label,
        unknown_weight_items=cart.shipping.unknown_weight_items,
    )


# ---------------------------------------------------------------------------
# Digital downloads
# ---------------------------------------------------------------------------
download_router = APIRouter(prefix="/api/downloads", tags=["downloads"])


@download_router.get("/{order_id}/{item_id}", response_class=RedirectResponse)
def download_digital_item(order_id: str, item_id: str, token: str | None = Query(default=None)) -> RedirectResponse:
    if not verify_download_token(order_id, item_id, token):
        raise HTTPException(status_code=403, detail="Invalid download link")

    with domain_errors():
        order = current_domain.repository_for(Order).get(order_id)
        if not order.is_paid:
            raise HTTPException(status_code=403, detail="Order not paid")
        url = locate_download(order, item_id)
    if url is None:
        raise HTTPException(status_code=404, detail="Item not found")

    logger.info("Digital download served", order_number=order.order_number, item_id=item_id)
    return RedirectResponse(url, status_code=307)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.post("/orders/fulfill", response_model=DispatchResponse, dependencies=[Depends(require_admin)])
def fulfill_order(body: FulfillOrderRequest) -> DispatchResponse:
    with domain_errors():
        result = SupplierDispatcher().dispatch(body.order_id)
    return DispatchResponse(**result.to_dict())


@admin_router.post(
    "/orders/sync-tracking",
    response_model=TrackingSyncResponse,
    dependencies=[Depends(require_admin_or_cron_key)],
)
def sync_tracking() -> TrackingSyncResponse:
    report = TrackingReconciliationJob().run()
    return TrackingSyncResponse(**report.to_dict())


@admin_router.get("/shipping-config", dependencies=[Depends(require_admin)])
def get_shipping_config() -> dict:
    return load_shipping_config().to_dict()


@admin_router.put("/shipping-config", dependencies=[Depends(require_admin)])
def update_shipping_config(body: ShippingConfigSchema) -> dict:
    command = UpdateShippingSettings(config=json.dumps(body.model_dump(exclude_none=True)))
    with domain_errors():
        return current_domain.process(command, asynchronous=False)


@admin_router.post(
    "/discount-codes",
    status_code=201,
    response_model=DiscountCodeIdResponse,
    dependencies=[Depends(require_admin)],
)
def create_discount_code(body: CreateDiscountCodeRequest) -> DiscountCodeIdResponse:
    command = CreateDiscountCode(**body.model_dump())
    with domain_errors():
        discount_code_id = current_domain.process(command, asynchronous=False)
    return DiscountCodeIdResponse(discount_code_id=discount_code_id)


@admin_router.post(
    "/notifications/retry",
    response_model=NotificationRetryResponse,
    dependencies=[Depends(require_admin)],
)
def retry_notifications() -> NotificationRetryResponse:
    return NotificationRetryResponse(**redeliver_failed_notifications())
