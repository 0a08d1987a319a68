"""Outbox consumer — delivers notifications as they are queued."""

import structlog
from protean.utils.mixins import handle

from ordering.domain import ordering
from ordering.notification.events import NotificationQueued, NotificationRetried
from ordering.notification.notification import Notification
from ordering.notification.outbox import try_deliver

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=Notification)
class NotificationDispatcher:
    """Sends queued and retried notifications via the email channel.

    Delivery is a no-op for anything no longer PENDING, so this handler and
    the inline best-effort send can both see the same notification safely.
    """

    @handle(NotificationQueued)
    def on_notification_queued(self, event: NotificationQueued) -> None:
        try_deliver(str(event.notification_id))

    @handle(NotificationRetried)
    def on_notification_retried(self, event: NotificationRetried) -> None:
        logger.info(
            "Redelivering notification",
            notification_id=str(event.notification_id),
            retry_count=event.retry_count,
        )
        try_deliver(str(event.notification_id))
