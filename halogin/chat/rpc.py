"""``chat.*`` RPC methods."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from halogin.chat import services
from halogin.notifications.models import Notification
from halogin.notifications.push import PushMessage
from halogin.realtime.events.notify import notify_user
from halogin.realtime.events.notify import notify_users
from halogin.realtime.rpc import RpcContext
from halogin.realtime.rpc import RpcInvalidParams
from halogin.realtime.rpc import RpcRegistry

logger = logging.getLogger(__name__)

chat_methods = RpcRegistry()


def _params(ctx: RpcContext) -> dict[str, Any]:
    if not isinstance(ctx.data, dict):
        msg = "Expected an object"
        raise RpcInvalidParams(msg)
    return ctx.data


def _uuid(value: Any, name: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        msg = f"{name} must be a UUID"
        raise RpcInvalidParams(msg) from exc


@chat_methods.register("create")
def create(ctx: RpcContext) -> dict:
    data = _params(ctx)
    if "with_company" in data:
        room, created = services.create_room(
            ctx.user_id, with_company=_uuid(data["with_company"], "with_company")
        )
    elif isinstance(data.get("with_user"), dict):
        target = data["with_user"]
        room, created = services.create_room(
            ctx.user_id,
            current_user_company_id=_uuid(
                target.get("current_user_company_id"), "current_user_company_id"
            ),
            other_user_id=_uuid(target.get("other_user_id"), "other_user_id"),
        )
    else:
        msg = "Expected with_company or with_user"
        raise RpcInvalidParams(msg)

    room_id = str(room.pk)
    if created:
        notify_users(services.participant_ids(room), "chat.new_room", {"room_id": room_id})
    return {"room_id": room_id}


@chat_methods.register("list")
def list_rooms(ctx: RpcContext) -> list[str]:
    return services.list_rooms(ctx.user_id)


@chat_methods.register("subscribe")
def subscribe(ctx: RpcContext) -> dict:
    data = _params(ctx)
    return services.room_snapshot(_uuid(data.get("room_id"), "room_id"), ctx.user_id)


@chat_methods.register("post")
def post(ctx: RpcContext) -> dict:
    data = _params(ctx)
    content = data.get("message")
    if not isinstance(content, str):
        msg = "message must be a string"
        raise RpcInvalidParams(msg)
    room, message = services.post_message(
        _uuid(data.get("room_id"), "room_id"),
        ctx.user_id,
        content,
        data.get("extra"),
    )

    room_id = str(room.pk)
    payload = {"room_id": room_id, "message": message}
    push = PushMessage(
        title="New message",
        body=content[:200],
        data={
            "type": (
                Notification.Type.CONTRACT
                if message["extra"]
                else Notification.Type.CHAT_MESSAGE
            ).value,
            "room_id": room_id,
        },
        link=f"/chat/{room_id}",
    )
    sender = str(ctx.user_id)
    for user_id in services.participant_ids(room):
        notify_user(user_id, "chat.message", payload, None if user_id == sender else push)
    return message


@chat_methods.register("mark_seen")
def mark_seen(ctx: RpcContext) -> dict:
    data = _params(ctx)
    room, message_id = services.mark_seen(
        _uuid(data.get("room_id"), "room_id"),
        ctx.user_id,
        data.get("message_id"),
    )
    payload = {"room_id": str(room.pk), "user_id": str(ctx.user_id), "message_id": message_id}
    notify_users(services.participant_ids(room), "chat.seen", payload)
    return payload
