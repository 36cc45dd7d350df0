"""Push messages queued for the FCM tokens of a login session."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from django.conf import settings
from kombu.exceptions import OperationalError

from halogin.notifications.models import SessionFcmToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    link: str = ""

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PushMessage:
        return cls(
            title=raw.get("title", ""),
            body=raw.get("body", ""),
            data=dict(raw.get("data") or {}),
            link=raw.get("link", ""),
        )

    def as_fcm_message(self, token: str) -> dict[str, Any]:
        """Body of an FCM HTTP v1 ``messages:send`` call for one device."""
        message: dict[str, Any] = {
            "token": token,
            "notification": {"title": self.title, "body": self.body},
        }
        if self.data:
            # FCM data values must be strings.
            message["data"] = {
                key: value if isinstance(value, str) else json.dumps(value)
                for key, value in self.data.items()
            }
        if self.link:
            message["webpush"] = {"fcm_options": {"link": self.link}}
        return message


def push_configured() -> bool:
    return bool(getattr(settings, "FCM_PROJECT_ID", ""))


def session_tokens(session_id: str) -> list[str]:
    return list(
        SessionFcmToken.objects.filter(session__jti=session_id).values_list(
            "token", flat=True
        )
    )


def queue_session_push(session_id: str, push: PushMessage) -> int:
    """Queue one delivery task per FCM token of the session.

    Returns:
        Number of queued deliveries.
    """
    if not push_configured():
        logger.debug("FCM is not configured; dropping push for session %s", session_id)
        return 0

    from halogin.notifications.tasks import send_push  # noqa: PLC0415

    queued = 0
    payload = push.as_dict()
    for token in session_tokens(session_id):
        try:
            send_push.delay(token, payload)
        except OperationalError:
            logger.exception("Failed to queue push for session %s", session_id)
            continue
        queued += 1
    return queued
