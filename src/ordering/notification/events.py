"""Domain events for the Notification aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Notification")
class NotificationQueued:
    """A notification was recorded in the outbox and awaits delivery."""

    __version__ = 1

    notification_id = Identifier(required=True)
    order_id = Identifier(required=True)
    notification_type = String(required=True)
    recipient = String(required=True)
    queued_at = DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationSent:
    __version__ = 1

    notification_id = Identifier(required=True)
    order_id = Identifier(required=True)
    message_id = String()
    sent_at = DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationFailed:
    __version__ = 1

    notification_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(required=True)
    retry_count = Integer(required=True)
    max_retries = Integer(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationRetried:
    __version__ = 1

    notification_id = Identifier(required=True)
    order_id = Identifier(required=True)
    retry_count = Integer(required=True)
    retried_at = DateTime(required=True)
