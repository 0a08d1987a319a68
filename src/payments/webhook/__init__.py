"""Payment webhook verifier factory.

Provides get_webhook_verifier() / set_webhook_verifier() to swap implementations:
- FakeWebhookVerifier for development and testing (default)
- StripeWebhookVerifier for production (PAYMENT_WEBHOOK_ADAPTER=stripe)
"""

import os

from payments.webhook.port import InvalidSignature, WebhookVerifier

_current_verifier: WebhookVerifier | None = None


def get_webhook_verifier() -> WebhookVerifier:
    """Return the current webhook verifier. Defaults to FakeWebhookVerifier."""
    global _current_verifier
    if _current_verifier is None:
        adapter = os.environ.get("PAYMENT_WEBHOOK_ADAPTER", "fake")
        if adapter == "fake":
            from payments.webhook.fake_adapter import FakeWebhookVerifier

            _current_verifier = FakeWebhookVerifier()
        elif adapter == "stripe":
            from payments.webhook.stripe_adapter import StripeWebhookVerifier

            _current_verifier = StripeWebhookVerifier(os.environ.get("STRIPE_WEBHOOK_SECRET", ""))
        else:
            raise ValueError(f"Unknown payment webhook adapter: {adapter}")
    return _current_verifier


def set_webhook_verifier(verifier: WebhookVerifier) -> None:
    """Override the active webhook verifier (useful for tests)."""
    global _current_verifier
    _current_verifier = verifier


def reset_webhook_verifier() -> None:
    """Reset to the default verifier."""
    global _current_verifier
    _current_verifier = None


__all__ = [
    "InvalidSignature",
    "WebhookVerifier",
    "get_webhook_verifier",
    "reset_webhook_verifier",
    "set_webhook_verifier",
]
