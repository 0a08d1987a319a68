"""Retry sweep — re-sends failed notifications still under their retry budget."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.notification.notification import Notification, NotificationStatus
from ordering.notification.outbox import try_deliver

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Notification")
class RetryNotification:
    notification_id = Identifier(required=True)


@ordering.command(part_of="Notification")
class RetryFailedNotifications:
    """Sweep every failed notification that may still be retried."""


@ordering.command_handler(part_of=Notification)
class RetryNotificationHandler:
    @handle(RetryNotification)
    def retry_notification(self, command: RetryNotification):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.retry()
        repo.add(notification)

    @handle(RetryFailedNotifications)
    def retry_failed_notifications(self, command: RetryFailedNotifications) -> list[str]:
        repo = current_domain.repository_for(Notification)
        failed = repo._dao.query.filter(status=NotificationStatus.FAILED.value).all().items

        retried = []
        for record in failed:
            notification = repo.get(record.id)
            if not notification.can_retry:
                continue
            notification.retry()
            repo.add(notification)
            retried.append(str(notification.id))

        logger.info("Failed notifications requeued", count=len(retried))
        return retried


def redeliver_failed_notifications() -> dict:
    """Requeue failed notifications, then attempt delivery for each."""
    retried = current_domain.process(RetryFailedNotifications(), asynchronous=False) or []
    repo = current_domain.repository_for(Notification)
    sent = 0
    for notification_id in retried:
        try_deliver(notification_id)
        # The outbox consumer may already have delivered it
        if repo.get(notification_id).status == NotificationStatus.SENT.value:
            sent += 1
    return {"retried": len(retried), "sent": sent}
