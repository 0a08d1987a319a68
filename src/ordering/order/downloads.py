"""Signed download links for digital items.

A link carries an HMAC-SHA256 token over ``<order_id>:<item_id>``; the
download endpoint recomputes it, compares in constant time and redirects a
paid order's digital item to its file in the digital products store.
"""

import hashlib
import hmac
import os

from protean.exceptions import ValidationError

from ordering.catalog.entry import catalog_entries_for


def _secret() -> bytes:
    secret = os.environ.get("DOWNLOAD_TOKEN_SECRET") or os.environ.get("STRIPE_WEBHOOK_SECRET")
    if not secret:
        raise RuntimeError("DOWNLOAD_TOKEN_SECRET is not configured")
    return secret.encode()


def generate_download_token(order_id: str, item_id: str) -> str:
    message = f"{order_id}:{item_id}".encode()
    return hmac.new(_secret(), message, hashlib.sha256).hexdigest()


def verify_download_token(order_id: str, item_id: str, token: str | None) -> bool:
    if not token:
        return False
    return hmac.compare_digest(generate_download_token(order_id, item_id), token)


def download_url(order_id: str, item_id: str) -> str:
    site_url = os.environ.get("SITE_URL", "http://localhost:3000").rstrip("/")
    token = generate_download_token(order_id, item_id)
    return f"{site_url}/api/downloads/{order_id}/{item_id}?token={token}"


def download_links(order, digital_variant_ids: set[str]) -> list[dict]:
    """``[{name, url}]`` for each digital item of ``order``."""
    return [
        {"name": item.name, "url": download_url(str(order.id), str(item.id))}
        for item in order.items or []
        if str(item.variant_id) in digital_variant_ids
    ]


def digital_file_url(file_path: str) -> str:
    """Public URL of a file in the digital products store."""
    site_url = os.environ.get("SITE_URL", "http://localhost:3000").rstrip("/")
    base_url = os.environ.get("DIGITAL_FILES_BASE_URL") or f"{site_url}/digital-products"
    return f"{base_url.rstrip('/')}/{file_path.lstrip('/')}"


def locate_download(order, item_id: str) -> str | None:
    """File URL behind ``item_id`` of a paid ``order``; None when the item is not in it."""
    if not order.is_paid:
        raise ValidationError({"payment_status": ["Order not paid"]})

    item = next((i for i in order.items or [] if str(i.id) == str(item_id)), None)
    if item is None:
        return None

    entry = catalog_entries_for([item.variant_id]).get(str(item.variant_id))
    if entry is None or not entry.is_digital:
        raise ValidationError({"item_id": ["This item is not a digital product"]})
    return digital_file_url(entry.digital_file_path)
