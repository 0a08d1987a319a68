"""Fake email adapter — records delivered messages for test assertions."""

from uuid import uuid4

from notifications.channel.email_port import EmailMessage, EmailPort, SendResult


class FakeEmailAdapter(EmailPort):
    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.attempts = 0
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self._failures_remaining = 0

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def fail_next(self, count: int = 1, failure_reason: str = "Email delivery failed"):
        """Fail the next ``count`` sends, then recover."""
        self._failures_remaining = count
        self.failure_reason = failure_reason

    def send(self, message: EmailMessage) -> SendResult:
        self.attempts += 1
        if not self.should_succeed or self._failures_remaining > 0:
            self._failures_remaining = max(0, self._failures_remaining - 1)
            return SendResult(success=False, error=self.failure_reason)

        self.sent.append(message)
        return SendResult(success=True, message_id=f"email-{uuid4().hex[:12]}")

    def sent_to(self, address: str) -> list[EmailMessage]:
        return [m for m in self.sent if m.to == address]

    def reset(self):
        """Clear sent emails and restore success behavior."""
        self.sent.clear()
        self.attempts = 0
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self._failures_remaining = 0
