"""Configurable fake webhook verifier for development and testing.

Accepts any non-empty signature unless configured to reject, and records
every payload it was asked to verify.
"""

import json

from payments.webhook.port import InvalidSignature, WebhookVerifier


class FakeWebhookVerifier(WebhookVerifier):
    def __init__(self) -> None:
        self.should_accept: bool = True
        self.calls: list[dict] = []

    def configure(self, should_accept: bool = True) -> None:
        """Configure verifier behavior at runtime."""
        self.should_accept = should_accept

    def construct_event(self, payload: bytes, signature: str) -> dict:
        self.calls.append({"payload": payload, "signature": signature})
        if not signature or not self.should_accept:
            raise InvalidSignature("No signatures found matching the expected signature for payload")
        try:
            return json.loads(payload)
        except ValueError as exc:
            raise InvalidSignature(f"Malformed webhook payload: {exc}") from exc
