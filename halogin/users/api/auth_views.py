from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from halogin.users.sessions import KEEP_LOGGED_IN_CLAIM
from halogin.users.sessions import SESSION_CLAIM
from halogin.users.sessions import close_session
from halogin.users.sessions import session_id_from_request

if TYPE_CHECKING:  # import for type checking only
    from datetime import timedelta

    from halogin.users.sessions import IssuedSession


def _access_cookie_name() -> str:
    return getattr(settings, "JWT_AUTH_COOKIE", "access_token")


def _refresh_cookie_name() -> str:
    return getattr(settings, "JWT_AUTH_REFRESH_COOKIE", "refresh_token")


def _set_cookie(
    response: Response,
    name: str,
    value: str,
    max_age: int | None,
) -> None:
    if not value:
        return
    cookie_kwargs = {
        "httponly": True,
        "secure": getattr(settings, "JWT_AUTH_SECURE", not settings.DEBUG),
        "samesite": getattr(settings, "JWT_AUTH_COOKIE_SAMESITE", "Lax"),
        "path": "/",
    }
    if max_age is not None:
        cookie_kwargs["max_age"] = max_age
    response.set_cookie(name, value, **cookie_kwargs)


def _set_jwt_cookies(
    response: Response,
    access: str | None,
    refresh: str | None,
    *,
    persistent: bool = True,
) -> None:
    """Attach the token cookies.

    Non-persistent sessions get browser-session cookies (no max-age) so they
    end when the browser closes.
    """
    access_lifetime: timedelta = settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"]
    refresh_lifetime: timedelta = settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"]

    if access:
        _set_cookie(
            response,
            _access_cookie_name(),
            access,
            int(access_lifetime.total_seconds()) if persistent else None,
        )
    if refresh:
        _set_cookie(
            response,
            _refresh_cookie_name(),
            refresh,
            int(refresh_lifetime.total_seconds()) if persistent else None,
        )


def set_session_cookies(response: Response, session: IssuedSession) -> Response:
    _set_jwt_cookies(
        response,
        session.access,
        session.refresh,
        persistent=session.keep_logged_in,
    )
    return response


def clear_session_cookies(response: Response) -> Response:
    response.delete_cookie(_access_cookie_name(), path="/")
    response.delete_cookie(_refresh_cookie_name(), path="/")
    return response


@extend_schema(tags=["Authentication"])
class CookieOnlyJWTRefreshView(TokenRefreshView):
    """Refresh that reads the refresh cookie and sets a new access cookie.

    Tokens never appear in the JSON body.
    """

    authentication_classes = ()

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        raw = request.data.get("refresh") or request.COOKIES.get(
            _refresh_cookie_name()
        )
        if not raw:
            raise NotAuthenticated
        serializer = self.get_serializer(data={"refresh": raw})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0]) from exc

        access = serializer.validated_data["access"]
        persistent = bool(AccessToken(access).get(KEEP_LOGGED_IN_CLAIM, True))
        response = Response({"detail": "refresh successful"})
        _set_jwt_cookies(
            response,
            access,
            serializer.validated_data.get("refresh"),
            persistent=persistent,
        )
        return response


@extend_schema(tags=["Authentication"], request=None, responses={204: None})
class LogoutView(APIView):
    """End the current session and drop its cookies."""

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        session_id = session_id_from_request(request)
        if session_id is None:
            raw = request.COOKIES.get(_refresh_cookie_name())
            if raw:
                with contextlib.suppress(TokenError):
                    session_id = RefreshToken(raw).get(SESSION_CLAIM)
        if session_id:
            close_session(session_id)
        response = Response(status=status.HTTP_204_NO_CONTENT)
        return clear_session_cookies(response)
