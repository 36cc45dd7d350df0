from __future__ import annotations

import logging

from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from halogin.users.sessions import SESSION_CLAIM
from halogin.users.sessions import session_is_active

logger = logging.getLogger(__name__)


class CookieJWTAuthentication(JWTAuthentication):
    """JWT authentication reading the ``Authorization`` header or the access cookie.

    A stale cookie is treated as anonymous so public endpoints (the OAuth
    login views) keep working; an invalid bearer header is still rejected.
    Tokens whose session was closed or expired are refused either way.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            raw_token = self.get_raw_token(header)
            if raw_token is None:
                return None
            validated = self.get_validated_token(raw_token)
        else:
            cookie_name = getattr(settings, "JWT_AUTH_COOKIE", "access_token")
            raw_token = request.COOKIES.get(cookie_name)
            if not raw_token:
                return None
            try:
                validated = self.get_validated_token(raw_token)
            except InvalidToken:
                logger.debug("Ignoring invalid access cookie")
                return None

        if not session_is_active(validated.get(SESSION_CLAIM)):
            msg = "Session has ended."
            raise AuthenticationFailed(msg, code="session_ended")
        return self.get_user(validated), validated
