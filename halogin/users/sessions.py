"""Login sessions.

A login session is a simplejwt refresh token tracked by the token_blacklist
app: its ``OutstandingToken`` row is the persisted session and its ``jti`` is
the session id. Every token minted for the session carries that id in the
``sid`` claim, so access tokens can be traced back to their session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.utils import timezone
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken
from rest_framework_simplejwt.token_blacklist.models import OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

if TYPE_CHECKING:  # import for type checking only
    from halogin.users.models import User

logger = logging.getLogger(__name__)

SESSION_CLAIM = "sid"
KEEP_LOGGED_IN_CLAIM = "klg"


@dataclass(frozen=True)
class IssuedSession:
    session_id: str
    access: str
    refresh: str
    keep_logged_in: bool


def open_session(user: User, *, keep_logged_in: bool = True) -> IssuedSession:
    """Start a new login session for ``user`` and mint its tokens."""

    refresh = RefreshToken.for_user(user)
    session_id = refresh[api_settings.JTI_CLAIM]
    refresh[SESSION_CLAIM] = session_id
    refresh[KEEP_LOGGED_IN_CLAIM] = keep_logged_in
    # for_user() stored the token before the session claims were added.
    OutstandingToken.objects.filter(jti=session_id).update(token=str(refresh))

    logger.info("Opened session %s for user %s", session_id, user.pk)
    return IssuedSession(
        session_id=session_id,
        access=str(refresh.access_token),
        refresh=str(refresh),
        keep_logged_in=keep_logged_in,
    )


def active_sessions():
    return OutstandingToken.objects.filter(
        expires_at__gt=timezone.now(),
        blacklistedtoken__isnull=True,
    )


def session_is_active(session_id: str | None) -> bool:
    if not session_id:
        return False
    return active_sessions().filter(jti=session_id).exists()


def active_session_ids_for_user(user_id) -> list[str]:
    return list(active_sessions().filter(user_id=user_id).values_list("jti", flat=True))


def close_session(session_id: str) -> bool:
    """End a session. Returns False when it was unknown or already closed."""

    outstanding = OutstandingToken.objects.filter(jti=session_id).first()
    if outstanding is None:
        return False
    _, created = BlacklistedToken.objects.get_or_create(token=outstanding)
    if created:
        logger.info("Closed session %s", session_id)
    return created


def prune_expired_sessions() -> int:
    """Delete expired sessions together with everything hanging off them."""

    deleted, _ = OutstandingToken.objects.filter(expires_at__lte=timezone.now()).delete()
    return deleted


def session_id_from_request(request) -> str | None:
    token = getattr(request, "auth", None)
    if token is None:
        return None
    try:
        return token.get(SESSION_CLAIM)
    except AttributeError:
        return None
