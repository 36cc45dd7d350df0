from __future__ import annotations

from halogin.notifications.models import Notification


def create_notification(
    recipient_id,
    title: str,
    message: str,
    notification_type: str = Notification.Type.OTHER,
    related_link: str = "",
) -> Notification:
    """Store a notification; the recipient is told once the transaction commits."""
    return Notification.objects.create(
        recipient_id=recipient_id,
        title=title,
        message=message,
        notification_type=notification_type,
        related_link=related_link,
    )
