"""Deliver an event to every live session of a user.

Each session of the user gets the event on all of its open pages. A session
where no page is being looked at, or that has no page open at all, gets the
push message on its FCM tokens instead.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from halogin.notifications.push import queue_session_push
from halogin.realtime import socketio
from halogin.realtime.sessions import registry
from halogin.users.sessions import active_session_ids_for_user

if TYPE_CHECKING:  # import for type checking only
    from halogin.notifications.push import PushMessage

logger = logging.getLogger(__name__)


def notify_user(
    user_id: Any,
    event: str,
    data: Any,
    push: PushMessage | None = None,
) -> None:
    sessions = registry.pages_by_session(user_id)
    if push is not None:
        for session_id in active_session_ids_for_user(user_id):
            sessions.setdefault(session_id, [])

    for session_id, pages in sessions.items():
        for page in pages:
            try:
                socketio.emit_to_page(page.socket_id, event, data)
            except Exception:
                logger.exception("Failed to send %s to page %s", event, page.socket_id)

        if push is None or any(page.currently_viewing for page in pages):
            continue
        try:
            queue_session_push(session_id, push)
        except Exception:
            logger.exception("Failed to queue push for session %s", session_id)


def notify_users(user_ids, event: str, data: Any, push: PushMessage | None = None) -> None:
    for user_id in dict.fromkeys(str(uid) for uid in user_ids):
        notify_user(user_id, event, data, push)
