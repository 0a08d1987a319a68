"""Payment webhook verifier port (abstract interface).

Authenticates an inbound payment-provider webhook and parses it into an
event dict. Verification always happens before any order state changes.
"""

from abc import ABC, abstractmethod


class InvalidSignature(Exception):
    """The webhook payload could not be authenticated."""


class WebhookVerifier(ABC):
    """Abstract webhook verifier interface."""

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> dict:
        """Verify ``signature`` over the raw ``payload`` and parse the event.

        Returns:
            dict with at least ``type`` and ``data.object``.

        Raises:
            InvalidSignature: when the signature is missing or does not match.
        """
        ...
