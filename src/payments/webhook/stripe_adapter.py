"""Stripe webhook verifier — production adapter over the stripe SDK."""

import json

import stripe
import structlog

from payments.webhook.port import InvalidSignature, WebhookVerifier

logger = structlog.get_logger(__name__)


class StripeWebhookVerifier(WebhookVerifier):
    def __init__(self, webhook_secret: str) -> None:
        if not webhook_secret:
            raise ValueError("STRIPE_WEBHOOK_SECRET is not configured")
        self.webhook_secret = webhook_secret

    def construct_event(self, payload: bytes, signature: str) -> dict:
        if not signature:
            raise InvalidSignature("Missing Stripe-Signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Webhook signature invalid", error=str(exc))
            raise InvalidSignature(str(exc)) from exc
        except ValueError as exc:
            logger.warning("Webhook payload malformed", error=str(exc))
            raise InvalidSignature(f"Malformed webhook payload: {exc}") from exc
        # Signature and JSON are valid; hand the plain payload to the processor
        return json.loads(payload)
