"""Tests for the payment webhook signature verifiers."""

import hashlib
import hmac
import json
import time

import pytest
from payments.webhook import get_webhook_verifier, reset_webhook_verifier
from payments.webhook.fake_adapter import FakeWebhookVerifier
from payments.webhook.port import InvalidSignature
from payments.webhook.stripe_adapter import StripeWebhookVerifier

SECRET = "whsec_test"
EVENT = {"id": "evt_1", "object": "event", "type": "checkout.session.completed", "data": {"object": {"id": "cs_1"}}}


def _sign(payload: str, secret: str = SECRET, timestamp: int | None = None) -> str:
    timestamp = timestamp or int(time.time())
    signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture(autouse=True)
def _reset():
    reset_webhook_verifier()
    yield
    reset_webhook_verifier()


class TestStripeWebhookVerifier:
    def test_valid_signature(self):
        payload = json.dumps(EVENT)
        event = StripeWebhookVerifier(SECRET).construct_event(payload.encode(), _sign(payload))
        assert event == EVENT

    def test_wrong_secret(self):
        payload = json.dumps(EVENT)
        with pytest.raises(InvalidSignature):
            StripeWebhookVerifier(SECRET).construct_event(payload.encode(), _sign(payload, secret="whsec_other"))

    def test_tampered_payload(self):
        payload = json.dumps(EVENT)
        signature = _sign(payload)
        tampered = payload.replace("cs_1", "cs_2")
        with pytest.raises(InvalidSignature):
            StripeWebhookVerifier(SECRET).construct_event(tampered.encode(), signature)

    def test_stale_timestamp(self):
        payload = json.dumps(EVENT)
        with pytest.raises(InvalidSignature):
            StripeWebhookVerifier(SECRET).construct_event(
                payload.encode(), _sign(payload, timestamp=int(time.time()) - 3600)
            )

    def test_missing_header(self):
        with pytest.raises(InvalidSignature):
            StripeWebhookVerifier(SECRET).construct_event(b"{}", "")

    def test_secret_required(self):
        with pytest.raises(ValueError):
            StripeWebhookVerifier("")


class TestFakeWebhookVerifier:
    def test_accepts_any_signature(self):
        verifier = FakeWebhookVerifier()
        assert verifier.construct_event(json.dumps(EVENT).encode(), "sig") == EVENT
        assert verifier.calls[0]["signature"] == "sig"

    def test_rejects_when_configured(self):
        verifier = FakeWebhookVerifier()
        verifier.configure(should_accept=False)
        with pytest.raises(InvalidSignature):
            verifier.construct_event(b"{}", "sig")

    def test_malformed_payload(self):
        with pytest.raises(InvalidSignature):
            FakeWebhookVerifier().construct_event(b"not json", "sig")


class TestVerifierFactory:
    def test_default_fake(self, monkeypatch):
        monkeypatch.delenv("PAYMENT_WEBHOOK_ADAPTER", raising=False)
        assert isinstance(get_webhook_verifier(), FakeWebhookVerifier)

    def test_stripe(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_WEBHOOK_ADAPTER", "stripe")
        monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", SECRET)
        assert isinstance(get_webhook_verifier(), StripeWebhookVerifier)
