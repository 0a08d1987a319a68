"""Outbox helpers — queue notifications with an order change, deliver them later.

``queue_notification`` only writes the Notification. It must be called inside
the unit of work that mutates the order, so both commit together or neither
does. ``deliver_notification`` runs afterwards; it never raises, because a
failed email must not fail the pipeline that triggered it.
"""

import json

import structlog
from notifications.channel import get_channel
from notifications.channel.email_port import EmailMessage
from notifications.templates import get_template
from protean.utils.globals import current_domain

from ordering.notification.notification import Notification, NotificationStatus

logger = structlog.get_logger(__name__)


def queue_notification(order_id: str, notification_type: str, recipient: str, context: dict) -> str:
    """Render ``notification_type`` and add it to the outbox. Returns its id."""
    rendered = get_template(notification_type).render(context)
    notification = Notification.queue(
        order_id=order_id,
        notification_type=notification_type,
        recipient=recipient,
        subject=rendered.get("subject"),
        body=rendered["body"],
        context_data=json.dumps(context, default=str),
    )
    current_domain.repository_for(Notification).add(notification)

    logger.info(
        "Notification queued",
        notification_id=str(notification.id),
        order_id=str(order_id),
        notification_type=notification_type,
    )
    return str(notification.id)


def deliver_notification(notification_id: str) -> bool:
    """Send a pending notification through the email channel.

    Returns True when it was sent by this call. Anything not PENDING (already
    sent, or failed and awaiting retry) is left alone.
    """
    repo = current_domain.repository_for(Notification)
    notification = repo.get(notification_id)
    if not notification.is_pending:
        logger.info(
            "Notification not pending, skipping delivery",
            notification_id=notification_id,
            status=notification.status,
        )
        return False

    try:
        result = get_channel().send(
            EmailMessage(
                to=notification.recipient,
                subject=notification.subject or "",
                body=notification.body,
            )
        )
    except Exception as exc:
        logger.error(
            "Email channel raised during delivery",
            notification_id=notification_id,
            order_id=str(notification.order_id),
            error=str(exc),
        )
        notification.mark_failed(str(exc))
    else:
        if result.success:
            notification.mark_sent(message_id=result.message_id)
        else:
            logger.warning(
                "Email delivery failed",
                notification_id=notification_id,
                order_id=str(notification.order_id),
                error=result.error,
            )
            notification.mark_failed(result.error)

    repo.add(notification)
    return notification.status == NotificationStatus.SENT.value


def try_deliver(notification_id: str | None) -> bool:
    """Best-effort delivery right after the queuing transaction commits."""
    if not notification_id:
        return False
    try:
        return deliver_notification(notification_id)
    except Exception as exc:
        # The notification stays in the outbox for the retry sweep
        logger.error("Immediate notification delivery failed", notification_id=notification_id, error=str(exc))
        return False
