"""Chat rooms between companies and users, and the contract offers in them.

A room has two sides: the room user (usually a creator) and every member of
the company. All functions here are synchronous and run inside the RPC
worker threads.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction

from halogin.chat.contracts import COMPANY
from halogin.chat.contracts import CREATOR
from halogin.chat.contracts import check_transition
from halogin.chat.models import ChatLastSeen
from halogin.chat.models import ChatMessage
from halogin.chat.models import ChatRoom
from halogin.chat.models import ContractOffer
from halogin.chat.models import ContractOfferUpdate
from halogin.chat.models import ContractStatus
from halogin.companies.models import Company
from halogin.companies.models import CompanyUser
from halogin.realtime.rpc import RpcInvalidParams
from halogin.realtime.rpc import RpcNotFound
from halogin.realtime.rpc import RpcPermissionDenied

logger = logging.getLogger(__name__)

User = get_user_model()

ROOM_NOT_FOUND = "Room of this id was not found"


def company_member_ids(company_id) -> list[str]:
    return [
        str(uid)
        for uid in CompanyUser.objects.filter(company_id=company_id).values_list(
            "user_id", flat=True
        )
    ]


def participant_ids(room: ChatRoom) -> list[str]:
    return [*company_member_ids(room.company_id), str(room.user_id)]


def side_of(room: ChatRoom, user_id) -> str | None:
    if str(room.user_id) == str(user_id):
        return CREATOR
    if CompanyUser.objects.filter(company_id=room.company_id, user_id=user_id).exists():
        return COMPANY
    return None


def room_for_participant(room_id, user_id) -> ChatRoom:
    room = ChatRoom.objects.filter(pk=room_id).first()
    if room is None or side_of(room, user_id) is None:
        raise RpcNotFound(ROOM_NOT_FOUND)
    return room


# Rooms -------------------------------------------------------------------


def create_room(
    user_id,
    *,
    with_company=None,
    current_user_company_id=None,
    other_user_id=None,
) -> tuple[ChatRoom, bool]:
    """Open (or find) the room between a company and a user.

    Either the caller opens a room with ``with_company``, or a member of
    ``current_user_company_id`` opens one with ``other_user_id``.
    """
    if with_company is not None:
        company_id, room_user_id = with_company, user_id
    else:
        if not CompanyUser.objects.filter(
            company_id=current_user_company_id, user_id=user_id
        ).exists():
            msg = "You are not in that company"
            raise RpcPermissionDenied(msg)
        company_id, room_user_id = current_user_company_id, other_user_id

    if not Company.objects.filter(pk=company_id).exists():
        msg = "Company not found"
        raise RpcNotFound(msg)
    if not User.objects.filter(pk=room_user_id).exists():
        msg = "User not found"
        raise RpcNotFound(msg)
    if str(room_user_id) in company_member_ids(company_id):
        msg = "Cannot make a chat with a user of the same company"
        raise RpcInvalidParams(msg)

    room, created = ChatRoom.objects.get_or_create(company_id=company_id, user_id=room_user_id)
    if created:
        logger.info("Opened chat room %s", room.pk)
    return room, created


def list_rooms(user_id) -> list[str]:
    company_ids = CompanyUser.objects.filter(user_id=user_id).values("company_id")
    rooms = ChatRoom.objects.filter(user_id=user_id) | ChatRoom.objects.filter(
        company_id__in=company_ids
    )
    return [str(pk) for pk in rooms.order_by("created_at").values_list("pk", flat=True)]


def user_info(user) -> dict[str, Any]:
    creator = getattr(user, "creator_profile", None)
    company_profile = getattr(user, "company_user_profile", None)
    profile = creator or company_profile
    return {
        "id": str(user.pk),
        "full_name": user.name,
        "given_name": profile.given_name if profile else user.first_name,
        "family_name": profile.family_name if profile else user.last_name,
        "pronouns": profile.pronouns if profile else "",
        "pfp_path": profile.pfp_path if profile else "",
        "companies": [
            str(cid)
            for cid in user.company_memberships.values_list("company_id", flat=True)
        ],
    }


def serialize_message(message: ChatMessage) -> dict[str, Any]:
    extra = None
    offer = getattr(message, "contract_offer", None)
    update = getattr(message, "contract_update", None)
    if offer is not None:
        extra = {
            "kind": "contract_created",
            "offer_id": offer.pk,
            "payout": offer.offered_payout,
        }
    elif update is not None:
        extra = {
            "kind": "contract_status_change",
            "offer_id": update.offer_id,
            "new_status": update.update_kind,
        }
    return {
        "id": message.pk,
        "from_user": str(message.from_user_id),
        "content": message.content,
        "created_at": message.created_at.isoformat(),
        "extra": extra,
    }


def room_snapshot(room_id, user_id) -> dict[str, Any]:
    room = room_for_participant(room_id, user_id)
    users = User.objects.filter(pk__in=participant_ids(room)).select_related(
        "creator_profile", "company_user_profile"
    )
    messages = room.messages.select_related("contract_offer", "contract_update")
    last_seen = room.last_seen.values_list("user_id", "last_message_seen_id")
    return {
        "users": {str(user.pk): user_info(user) for user in users},
        "messages": [serialize_message(message) for message in messages],
        "last_seen_message": {str(uid): mid for uid, mid in last_seen},
    }


# Messages ----------------------------------------------------------------


def _parse_extra(extra: Any) -> tuple[str, dict[str, Any]] | None:
    if extra is None:
        return None
    if not isinstance(extra, dict) or len(extra) != 1:
        msg = "extra must hold exactly one of contract_created, contract_status_change"
        raise RpcInvalidParams(msg)
    kind, body = next(iter(extra.items()))
    if kind not in ("contract_created", "contract_status_change") or not isinstance(body, dict):
        msg = f"Unknown message extra {kind!r}"
        raise RpcInvalidParams(msg)
    return kind, body


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"{name} must be a positive integer"
        raise RpcInvalidParams(msg)
    return value


def _create_offer(room: ChatRoom, side: str, message: ChatMessage, body: dict) -> None:
    if side != COMPANY:
        msg = "Only company members can offer a contract"
        raise RpcPermissionDenied(msg)
    payout = _positive_int(body.get("payout"), "payout")
    ContractOffer.objects.create(message=message, offered_payout=payout)


def _change_status(room: ChatRoom, side: str, message: ChatMessage, body: dict) -> None:
    offer_id = _positive_int(body.get("offer_id"), "offer_id")
    new_status = body.get("new_status")
    if new_status not in ContractStatus.values:
        msg = f"Unknown contract status {new_status!r}"
        raise RpcInvalidParams(msg)
    offer = (
        ContractOffer.objects.select_for_update()
        .filter(pk=offer_id, message__room=room)
        .first()
    )
    if offer is None:
        msg = "Contract offer not found"
        raise RpcNotFound(msg)
    check_transition(offer.current_status, new_status, side)
    ContractOfferUpdate.objects.create(message=message, offer=offer, update_kind=new_status)


def post_message(room_id, user_id, content: str, extra: Any = None) -> tuple[ChatRoom, dict[str, Any]]:
    """Store a message (and its contract extra) atomically."""
    room = room_for_participant(room_id, user_id)
    side = side_of(room, user_id)
    parsed = _parse_extra(extra)
    with transaction.atomic():
        message = ChatMessage.objects.create(room=room, from_user_id=user_id, content=content)
        if parsed is not None:
            kind, body = parsed
            if kind == "contract_created":
                _create_offer(room, side, message, body)
            else:
                _change_status(room, side, message, body)
    message = ChatMessage.objects.select_related("contract_offer", "contract_update").get(
        pk=message.pk
    )
    return room, serialize_message(message)


def mark_seen(room_id, user_id, message_id: int) -> tuple[ChatRoom, int]:
    """Move the user's read marker forward; it never moves back."""
    room = room_for_participant(room_id, user_id)
    message_id = _positive_int(message_id, "message_id")
    if not room.messages.filter(pk=message_id).exists():
        msg = "Message not found in this room"
        raise RpcNotFound(msg)
    with transaction.atomic():
        # get_or_create falls back to a second lookup when a concurrent
        # first-time insert wins the unique constraint.
        seen, created = ChatLastSeen.objects.select_for_update().get_or_create(
            room=room,
            user_id=user_id,
            defaults={"last_message_seen_id": message_id},
        )
        if not created and seen.last_message_seen_id < message_id:
            seen.last_message_seen_id = message_id
            seen.save(update_fields=["last_message_seen"])
    return room, seen.last_message_seen_id
