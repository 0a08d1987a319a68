"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    variant_id: str
    quantity: int = Field(default=1, ge=1)


# ---------------------------------------------------------------------------
# Checkout / Shipping
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    email: str | None = None
    items: list[CartItemSchema] = Field(min_length=1)
    discount_code: str | None = None
    shipping_country: str = Field(default="US", min_length=2, max_length=2)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": "buyer@example.com",
                    "items": [{"variant_id": "var-mug-11oz", "quantity": 2}],
                    "discount_code": "WELCOME10",
                    "shipping_country": "US",
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str
    subtotal: float
    discount_amount: float
    shipping_cost: float
    shipping_method: str | None = None
    shipping_label: str | None = None
    total: float


class ShippingEstimateRequest(BaseModel):
    items: list[CartItemSchema] = Field(min_length=1)
    shipping_country: str = Field(default="US", min_length=2, max_length=2)


class ShippingEstimateResponse(BaseModel):
    subtotal: float
    cost: float
    method: str
    label: str
    unknown_weight_items: int = 0


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------
class WebhookResponse(BaseModel):
    received: bool = True
    status: str
    order_id: str | None = None
    dispatch: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
class FulfillOrderRequest(BaseModel):
    order_id: str


class DispatchResponse(BaseModel):
    success: bool
    skipped: bool = False
    message: str = ""
    supplier_order_id: str | None = None
    supplier_order_number: str | None = None


class TrackingResultSchema(BaseModel):
    orderNumber: str
    trackingNumber: str | None = None
    status: str | None = None
    supplierStatus: str | None = None
    updated: bool = False
    emailed: bool = False
    error: str | None = None


class TrackingSyncResponse(BaseModel):
    checked: int
    updated: int
    emailed: int
    results: list[TrackingResultSchema]


class WeightTierSchema(BaseModel):
    max_grams: int | None = Field(default=None, ge=0)
    price: float = Field(ge=0)


class ShippingConfigSchema(BaseModel):
    free_shipping_enabled: bool | None = None
    free_shipping_threshold: float | None = None
    free_shipping_weight_cap_grams: int | None = None
    use_supplier_quotes: bool | None = None
    quote_markup_percent: float | None = None
    minimum_charge: float | None = None
    weight_tiers: list[WeightTierSchema] | None = None
    unknown_weight_rate: float | None = None
    flat_rate: float | None = None


class CreateDiscountCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    value: float = Field(ge=0)
    discount_type: str = Field(default="fixed", pattern="^(percentage|fixed)$")
    min_order_amount: float = Field(default=0.0, ge=0)
    code_type: str = Field(default="standard", pattern="^(standard|influencer)$")
    payout_per_use: float = Field(default=0.0, ge=0)
    payout_percent: float = Field(default=0.0, ge=0, le=100)


class DiscountCodeIdResponse(BaseModel):
    discount_code_id: str


class NotificationRetryResponse(BaseModel):
    retried: int
    sent: int
