"""Tests for the Notification outbox aggregate and its state machine."""

import pytest
from ordering.notification.events import (
    NotificationFailed,
    NotificationQueued,
    NotificationRetried,
    NotificationSent,
)
from ordering.notification.notification import (
    Notification,
    NotificationStatus,
    NotificationType,
)
from protean.exceptions import ValidationError


def _make_notification(**overrides):
    defaults = {
        "order_id": "order-1",
        "notification_type": NotificationType.ORDER_CONFIRMATION.value,
        "recipient": "buyer@example.com",
        "subject": "Order confirmed",
        "body": "Thanks for your order",
    }
    defaults.update(overrides)
    return Notification.queue(**defaults)


class TestNotificationQueue:
    def test_queued_notification_is_pending(self):
        notification = _make_notification()
        assert notification.is_pending
        assert notification.retry_count == 0
        assert isinstance(notification._events[-1], NotificationQueued)


class TestNotificationDelivery:
    def test_mark_sent(self):
        notification = _make_notification()
        notification.mark_sent("msg-1")

        assert notification.status == NotificationStatus.SENT.value
        assert notification.message_id == "msg-1"
        assert notification.sent_at is not None
        assert isinstance(notification._events[-1], NotificationSent)

    def test_sent_is_final(self):
        notification = _make_notification()
        notification.mark_sent("msg-1")
        with pytest.raises(ValidationError):
            notification.mark_failed("late bounce")

    def test_mark_failed_counts_attempt(self):
        notification = _make_notification()
        notification.mark_failed("SMTP 550")

        assert notification.status == NotificationStatus.FAILED.value
        assert notification.failure_reason == "SMTP 550"
        assert notification.retry_count == 1
        assert isinstance(notification._events[-1], NotificationFailed)

    def test_blank_reason_gets_default(self):
        notification = _make_notification()
        notification.mark_failed(None)
        assert notification.failure_reason == "Unknown delivery error"


class TestNotificationRetry:
    def test_retry_puts_failed_back_to_pending(self):
        notification = _make_notification()
        notification.mark_failed("timeout")
        notification.retry()

        assert notification.is_pending
        assert notification.failure_reason is None
        assert isinstance(notification._events[-1], NotificationRetried)

    def test_pending_cannot_be_retried(self):
        with pytest.raises(ValidationError):
            _make_notification().retry()

    def test_retry_limit(self):
        notification = _make_notification(max_retries=2)
        notification.mark_failed("one")
        notification.retry()
        notification.mark_failed("two")

        assert notification.can_retry is False
        with pytest.raises(ValidationError) as exc:
            notification.retry()
        assert "retry_count" in exc.value.messages
