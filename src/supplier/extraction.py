"""Tolerant parsers for the supplier's shape-shifting responses.

Each parser is an ordered list of extraction attempts; the first attempt
that yields a non-empty value wins. New response shapes are supported by
appending an attempt, without touching the callers.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

Attempt = Callable[[Any], Any]


def _path(*keys: str | int) -> Attempt:
    """Attempt that walks ``keys`` through nested dicts/lists."""

    def attempt(payload):
        node = payload
        for key in keys:
            if isinstance(key, int):
                if not isinstance(node, list) or len(node) <= key:
                    return None
                node = node[key]
            else:
                if not isinstance(node, dict):
                    return None
                node = node.get(key)
            if node is None:
                return None
        return node

    return attempt


def first_match(payload: Any, attempts: Sequence[Attempt]) -> Any:
    """Return the first non-empty value produced by ``attempts``."""
    for attempt in attempts:
        value = attempt(payload)
        if value not in (None, "", [], {}):
            return value
    return None


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------
_TRACKING_RECORD_ATTEMPTS: tuple[Attempt, ...] = (
    _path("trackingInfoList", 0),
    _path("trackingInfo", 0),
    _path("logisticTrackingInfo", 0),
    _path(0),
    lambda payload: payload if isinstance(payload, dict) else None,
)

_TRACKING_NUMBER_ATTEMPTS = (
    _path("trackingNumber"),
    _path("trackingNo"),
    _path("tracking_no"),
    _path("trackNumber"),
)

_TRACKING_URL_ATTEMPTS = (
    _path("trackingUrl"),
    _path("tracking_url"),
    _path("trackUrl"),
    _path("logisticUrl"),
)

_CARRIER_ATTEMPTS = (
    _path("logisticName"),
    _path("carrier"),
    _path("logisticCompany"),
)

_RECORD_STATUS_ATTEMPTS = (
    _path("status"),
    _path("trackingStatus"),
    _path("logisticStatus"),
)

_PAYLOAD_STATUS_ATTEMPTS = (
    _path("status"),
    _path("logisticStatus"),
)


@dataclass(frozen=True)
class TrackingInfo:
    tracking_number: str | None = None
    tracking_url: str | None = None
    carrier: str | None = None
    status: str | None = None

    @property
    def is_delivered(self) -> bool:
        return bool(self.status) and "delivered" in self.status.lower()


def _text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_tracking_info(payload: Any) -> TrackingInfo:
    """Normalize a raw tracking payload into a ``TrackingInfo``.

    The record is located by trying ``trackingInfoList[0]``,
    ``trackingInfo[0]``, ``logisticTrackingInfo[0]``, a bare array's first
    element, and finally the payload itself. Status falls back to the
    top-level payload when the record carries none.
    """
    record = first_match(payload, _TRACKING_RECORD_ATTEMPTS) or {}
    if not isinstance(record, dict):
        record = {}

    status = first_match(record, _RECORD_STATUS_ATTEMPTS)
    if status is None and isinstance(payload, dict):
        status = first_match(payload, _PAYLOAD_STATUS_ATTEMPTS)

    return TrackingInfo(
        tracking_number=_text(first_match(record, _TRACKING_NUMBER_ATTEMPTS)),
        tracking_url=_text(first_match(record, _TRACKING_URL_ATTEMPTS)),
        carrier=_text(first_match(record, _CARRIER_ATTEMPTS)),
        status=_text(status),
    )


# ---------------------------------------------------------------------------
# Order creation
# ---------------------------------------------------------------------------
_ORDER_ID_ATTEMPTS = (
    _path("orderId"),
    _path("order_id"),
    _path("order", "orderId"),
    _path("order", "order_id"),
    _path("id"),
)

_ORDER_NUMBER_ATTEMPTS = (
    _path("orderNumber"),
    _path("order_number"),
    _path("order", "orderNumber"),
    _path("order", "order_number"),
    _path("number"),
)


@dataclass(frozen=True)
class SupplierOrderFields:
    order_id: str | None = None
    order_number: str | None = None


def extract_supplier_order_fields(payload: Any) -> SupplierOrderFields:
    """Pull the supplier order id and number out of a create-order response."""
    if not isinstance(payload, dict):
        return SupplierOrderFields()
    return SupplierOrderFields(
        order_id=_text(first_match(payload, _ORDER_ID_ATTEMPTS)),
        order_number=_text(first_match(payload, _ORDER_NUMBER_ATTEMPTS)),
    )
