"""Notification aggregate (CQRS) — the transactional email outbox.

A Notification is written in the same unit of work as the order transition
that makes it due, so a crash between the state change and the send can no
longer lose the email. Delivery happens afterwards, from the outbox.

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.notification.events import (
    NotificationFailed,
    NotificationQueued,
    NotificationRetried,
    NotificationSent,
)


class NotificationType(Enum):
    ORDER_CONFIRMATION = "OrderConfirmation"
    SHIPPING_UPDATE = "ShippingUpdate"


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED},
    NotificationStatus.FAILED: {NotificationStatus.PENDING},
    NotificationStatus.SENT: set(),
}


@ordering.aggregate
class Notification:
    order_id = Identifier(required=True)
    notification_type = String(choices=NotificationType, required=True)
    recipient = String(required=True, max_length=254)

    subject = String(max_length=500)
    body = Text(required=True)
    context_data = Text()  # JSON: data used to render the template

    status = String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    message_id = String(max_length=255)
    failure_reason = String(max_length=500)
    retry_count = Integer(default=0)
    max_retries = Integer(default=3)

    sent_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def queue(cls, order_id, notification_type, recipient, body, subject=None, context_data=None, max_retries=3):
        """Record a notification as due."""
        now = datetime.now(UTC)
        notification = cls(
            order_id=order_id,
            notification_type=notification_type,
            recipient=recipient,
            subject=subject,
            body=body,
            context_data=context_data,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            max_retries=max_retries,
            created_at=now,
            updated_at=now,
        )
        notification.raise_(
            NotificationQueued(
                notification_id=str(notification.id),
                order_id=str(order_id),
                notification_type=notification_type,
                recipient=recipient,
                queued_at=now,
            )
        )
        return notification

    @property
    def is_pending(self) -> bool:
        return self.status == NotificationStatus.PENDING.value

    @property
    def can_retry(self) -> bool:
        return self.status == NotificationStatus.FAILED.value and self.retry_count < self.max_retries

    def _assert_can_transition(self, target_status):
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, message_id=None):
        self._assert_can_transition(NotificationStatus.SENT)

        now = datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.message_id = message_id
        self.failure_reason = None
        self.sent_at = now
        self.updated_at = now
        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                order_id=str(self.order_id),
                message_id=message_id,
                sent_at=now,
            )
        )

    def mark_failed(self, reason):
        self._assert_can_transition(NotificationStatus.FAILED)

        now = datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.failure_reason = (reason or "Unknown delivery error")[:500]
        self.retry_count = self.retry_count + 1
        self.updated_at = now
        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                order_id=str(self.order_id),
                reason=self.failure_reason,
                retry_count=self.retry_count,
                max_retries=self.max_retries,
                failed_at=now,
            )
        )

    def retry(self):
        """Put a failed notification back in the outbox."""
        if NotificationStatus(self.status) != NotificationStatus.FAILED:
            raise ValidationError({"status": ["Only failed notifications can be retried"]})
        if self.retry_count >= self.max_retries:
            raise ValidationError({"retry_count": ["Maximum retry attempts exceeded"]})

        now = datetime.now(UTC)
        self.status = NotificationStatus.PENDING.value
        self.failure_reason = None
        self.updated_at = now
        self.raise_(
            NotificationRetried(
                notification_id=str(self.id),
                order_id=str(self.order_id),
                retry_count=self.retry_count,
                retried_at=now,
            )
        )
