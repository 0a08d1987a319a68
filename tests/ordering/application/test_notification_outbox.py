"""Application tests for the notification outbox: delivery and retry."""

import pytest
from ordering.notification.notification import Notification, NotificationStatus, NotificationType
from ordering.notification.outbox import deliver_notification, queue_notification, try_deliver
from ordering.notification.retry import RetryNotification, redeliver_failed_notifications
from protean import current_domain
from protean.exceptions import ValidationError

from ordering_helpers import confirm_payment, reload


@pytest.fixture(autouse=True)
def _download_secret(monkeypatch):
    monkeypatch.setenv("DOWNLOAD_TOKEN_SECRET", "test-secret")


def _notification_for(order):
    repo = current_domain.repository_for(Notification)
    return repo._dao.query.filter(order_id=str(order.id)).all().first


def _queue(recipient="buyer@example.com"):
    return queue_notification(
        order_id="order-1",
        notification_type=NotificationType.ORDER_CONFIRMATION.value,
        recipient=recipient,
        context={"order_number": "MI-1", "items": [], "total": 10.0},
    )


class TestDelivery:
    def test_queued_notification_renders_template(self):
        notification = current_domain.repository_for(Notification).get(_queue())
        assert notification.subject == "Order Confirmed - #MI-1"
        assert "Order #MI-1 is confirmed" in notification.body

    def test_delivered_once(self, email):
        notification_id = _queue()

        try_deliver(notification_id)
        assert deliver_notification(notification_id) is False

        notification = current_domain.repository_for(Notification).get(notification_id)
        assert notification.status == NotificationStatus.SENT.value
        assert len(email.sent) == 1

    def test_channel_exception_marks_failed(self, email, monkeypatch):
        def boom(message):
            raise ConnectionError("smtp down")

        monkeypatch.setattr(email, "send", boom)
        notification_id = _queue()

        assert try_deliver(notification_id) is False

        notification = current_domain.repository_for(Notification).get(notification_id)
        assert notification.status == NotificationStatus.FAILED.value
        assert "smtp down" in notification.failure_reason

    def test_try_deliver_without_id(self):
        assert try_deliver(None) is False


@pytest.mark.usefixtures("catalog", "supplier")
class TestPaymentEmailFailure:
    def test_failed_email_leaves_payment_intact(self, email, pending_order):
        email.configure(should_succeed=False)

        confirm_payment(pending_order.id)

        notification = _notification_for(pending_order)
        assert notification.status == NotificationStatus.FAILED.value
        assert notification.retry_count == 1
        assert reload(pending_order).is_paid

    def test_retry_sweep_delivers(self, email, pending_order):
        email.configure(should_succeed=False)
        confirm_payment(pending_order.id)
        email.configure(should_succeed=True)

        summary = redeliver_failed_notifications()

        assert summary == {"retried": 1, "sent": 1}
        assert _notification_for(pending_order).status == NotificationStatus.SENT.value
        assert len(email.sent_to("buyer@example.com")) == 1

    def test_retry_budget_is_bounded(self, email, pending_order):
        email.configure(should_succeed=False)
        confirm_payment(pending_order.id)

        redeliver_failed_notifications()
        redeliver_failed_notifications()
        summary = redeliver_failed_notifications()

        notification = _notification_for(pending_order)
        assert summary["retried"] == 0
        assert notification.retry_count == notification.max_retries

    def test_retry_single_notification(self, email, pending_order):
        email.configure(should_succeed=False)
        confirm_payment(pending_order.id)
        email.configure(should_succeed=True)

        notification = _notification_for(pending_order)
        current_domain.process(RetryNotification(notification_id=str(notification.id)), asynchronous=False)
        try_deliver(str(notification.id))

        assert _notification_for(pending_order).status == NotificationStatus.SENT.value

    def test_sent_notification_cannot_be_retried(self, email, pending_order):
        confirm_payment(pending_order.id)
        notification = _notification_for(pending_order)

        with pytest.raises(ValidationError):
            current_domain.process(RetryNotification(notification_id=str(notification.id)), asynchronous=False)
