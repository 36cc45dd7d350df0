from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any

from halogin.notifications.push import PushMessage
from halogin.realtime.events.notify import notify_user

if TYPE_CHECKING:  # import for type checking only
    from halogin.notifications.models import Notification

NOTIFICATION_EVENT = "notification"


def build_notification_payload(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.notification_type,
        "link": notification.related_link,
    }


def publish_notification_created(notification: Notification) -> None:
    """Publish a newly created Notification to the recipient in realtime."""

    payload = build_notification_payload(notification)
    push = PushMessage(
        title=notification.title,
        body=notification.message,
        data={"type": notification.notification_type, "id": str(notification.id)},
        link=notification.related_link,
    )
    notify_user(notification.recipient_id, NOTIFICATION_EVENT, payload, push)
