"""Global Socket.IO server for the frontend.

Every feature shares this one server instance. Clients talk to it through a
single ``rpc`` event: method calls go out as ``{method, data, nonce}`` and come
back on ``rpc`` with the same nonce; pushed events arrive as ``{event, data}``.

Frontend convention:
- Socket.IO path: /ws/
- Auth: the ``access_token`` cookie, ``query.token`` or ``auth.token``
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from http.cookies import SimpleCookie
from typing import Any
from urllib.parse import parse_qs

import jwt
import socketio
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError

from halogin.realtime.rpc import handle_envelope
from halogin.realtime.rpc import root
from halogin.realtime.sessions import registry
from halogin.users.sessions import SESSION_CLAIM
from halogin.users.sessions import session_is_active

logger = logging.getLogger(__name__)

RPC_EVENT = "rpc"

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


@dataclass(frozen=True)
class SocketIdentity:
    user_id: str
    session_id: str


def room_for_user(user_id) -> str:
    return f"user_{user_id}"


def _token_expired(token: str) -> bool:
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return False
    exp = claims.get("exp")
    return isinstance(exp, (int, float)) and exp <= time.time()


@database_sync_to_async
def _identity_from_access_token(token: str) -> SocketIdentity:
    jwt_auth = JWTAuthentication()
    validated = jwt_auth.get_validated_token(token)
    session_id = validated.get(SESSION_CLAIM)
    if not session_is_active(session_id):
        msg = "Session has ended."
        raise AuthenticationFailed(msg, code="session_ended")
    user = jwt_auth.get_user(validated)
    return SocketIdentity(user_id=str(user.pk), session_id=session_id)


def _scope_of(environ: dict[str, Any]) -> Any:
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            return inner
    return environ


def _cookie_header(environ: dict[str, Any]) -> str:
    scope = _scope_of(environ)
    if not isinstance(scope, dict):
        return ""
    if scope.get("HTTP_COOKIE"):
        return str(scope["HTTP_COOKIE"])
    for name, value in scope.get("headers") or ():
        if name in (b"cookie", "cookie"):
            return value.decode("latin-1") if isinstance(value, bytes) else str(value)
    return ""


def _extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract the JWT access token from the handshake.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """
    scope = _scope_of(environ)

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    cookies = SimpleCookie()
    cookies.load(_cookie_header(environ))
    morsel = cookies.get(getattr(settings, "JWT_AUTH_COOKIE", "access_token"))
    if morsel is not None and morsel.value:
        return morsel.value

    return None


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    token = _extract_token(environ, auth)
    if not token:
        msg = "unauthorized"
        raise ConnectionRefusedError(msg)

    try:
        identity = await _identity_from_access_token(token)
    except (TokenError, AuthenticationFailed) as exc:
        # The frontend refreshes its tokens on this exact string.
        if _token_expired(token):
            msg = "jwt_expired"
            raise ConnectionRefusedError(msg) from exc
        msg = "unauthorized"
        raise ConnectionRefusedError(msg) from exc
    except Exception as exc:
        logger.exception("Socket.IO connect error")
        msg = "server_error"
        raise ConnectionRefusedError(msg) from exc

    await sio.save_session(
        sid,
        {"user_id": identity.user_id, "session_id": identity.session_id},
    )
    await sio.enter_room(sid, room_for_user(identity.user_id))
    registry.add_page(identity.session_id, identity.user_id, sid)


@sio.event
async def disconnect(sid: str, *args):
    registry.close_page(sid)


@sio.on(RPC_EVENT)
async def rpc(sid: str, data: Any):
    session = await sio.get_session(sid)
    if not isinstance(session, dict) or not session.get("user_id"):
        await sio.emit(RPC_EVENT, {"error": "unauthorized"}, to=sid)
        return
    reply = await handle_envelope(
        root,
        data,
        user_id=session["user_id"],
        session_id=session.get("session_id"),
        socket_id=sid,
    )
    await sio.emit(RPC_EVENT, reply, to=sid)


def emit_to_page(socket_id: str, event: str, data: Any) -> None:
    """Push an event to one page from sync Django code."""

    async_to_sync(sio.emit)(RPC_EVENT, {"event": event, "data": data}, to=socket_id)
