"""OAuth2 account helpers.

One helper class per provider wraps the authorization-code and refresh-token
exchanges and knows how to turn the provider's token response into a linked
account row. A helper instance is one fresh grant: tokens, expiry and the
identity claims of the account it belongs to.
"""

from __future__ import annotations

import base64
import logging
from datetime import timedelta
from typing import TYPE_CHECKING
from typing import Any
from typing import ClassVar

import jwt
from django.conf import settings
from django.utils import timezone

from halogin.accounts.exceptions import InvalidAuthorizationCode
from halogin.accounts.models import GoogleAccount
from halogin.accounts.models import OAuthAccount
from halogin.accounts.models import TwitchAccount
from halogin.integrations.exceptions import UpstreamServiceError
from halogin.integrations.http import HttpError
from halogin.integrations.http import request_json

if TYPE_CHECKING:  # import for type checking only
    from datetime import datetime

    from halogin.users.models import User

logger = logging.getLogger(__name__)

# Access tokens are renewed when they expire within this window.
REFRESH_BUFFER = timedelta(seconds=1)

TWITCH_HELIX_URL = "https://api.twitch.tv/helix"


def _timeout() -> float:
    return getattr(settings, "OAUTH_HTTP_TIMEOUT", 15.0)


class OAuthAccountHelper:
    provider: ClassVar[str]
    auth_url: ClassVar[str]
    token_url: ClassVar[str]
    account_model: ClassVar[type[OAuthAccount]]
    # Send client credentials as HTTP Basic auth instead of form fields.
    basic_auth: ClassVar[bool] = False

    def __init__(
        self,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
        claims: dict[str, Any],
    ):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_at = expires_at
        self.claims = claims

    # Provider specifics -------------------------------------------------

    @classmethod
    def client_id(cls) -> str:
        return getattr(settings, f"{cls.provider.upper()}_CLIENT_ID", "")

    @classmethod
    def client_secret(cls) -> str:
        return getattr(settings, f"{cls.provider.upper()}_CLIENT_SECRET", "")

    @classmethod
    def extra_headers(cls) -> dict[str, str]:
        return {}

    @classmethod
    def decode_claims(
        cls,
        access_token: str,
        payload: dict[str, Any],
        previous: dict[str, Any] | None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def account_lookup(cls, claims: dict[str, Any]) -> dict[str, Any]:
        """Primary-key lookup of the account row the claims identify."""
        raise NotImplementedError

    def account_fields(self) -> dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def claims_of(cls, account: OAuthAccount) -> dict[str, Any]:
        raise NotImplementedError

    # Token exchanges ----------------------------------------------------

    @classmethod
    def _exchange(
        cls,
        form: dict[str, str],
        error: type[Exception],
        message: str,
    ) -> dict[str, Any]:
        headers: dict[str, str] = {}
        if cls.basic_auth:
            raw = f"{cls.client_id()}:{cls.client_secret()}".encode()
            headers["Authorization"] = "Basic " + base64.b64encode(raw).decode()
        else:
            form = {
                **form,
                "client_id": cls.client_id(),
                "client_secret": cls.client_secret(),
            }
        try:
            payload = request_json(
                cls.token_url,
                method="POST",
                form=form,
                headers=headers,
                timeout=_timeout(),
            )
        except HttpError as exc:
            logger.warning("%s token exchange failed: %s", cls.provider, exc)
            raise error(message) from exc
        if not isinstance(payload, dict):
            msg = f"{cls.provider} token endpoint returned an unexpected payload."
            raise UpstreamServiceError(msg)
        return payload

    @classmethod
    def _from_token_response(
        cls,
        payload: dict[str, Any],
        refresh_token: str | None,
        previous: dict[str, Any] | None = None,
    ):
        token_type = str(payload.get("token_type", "")).lower()
        if token_type != "bearer":
            msg = f"Unsupported token type {payload.get('token_type')!r}."
            raise UpstreamServiceError(msg)
        expires_in = payload.get("expires_in")
        if expires_in is None:
            msg = "Failed to get an expiry time for the given code."
            raise UpstreamServiceError(msg)
        if not refresh_token:
            msg = "Could not get a refresh token for the given code."
            raise UpstreamServiceError(msg)
        access_token = payload.get("access_token")
        if not access_token:
            msg = "Token response is missing the access token."
            raise UpstreamServiceError(msg)

        expires_at = timezone.now() + timedelta(seconds=int(expires_in))
        claims = cls.decode_claims(access_token, payload, previous)
        return cls(access_token, refresh_token, expires_at, claims)

    @classmethod
    def from_code(cls, redirect_origin: str, code: str):
        """Exchange an authorization code for a fresh grant."""
        payload = cls._exchange(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_origin,
            },
            InvalidAuthorizationCode,
            "Could not get the tokens from the provided code.",
        )
        return cls._from_token_response(payload, payload.get("refresh_token"))

    @classmethod
    def renew(cls, refresh_token: str, previous: dict[str, Any] | None = None):
        """Exchange a refresh token; keeps the old one if none is returned."""
        payload = cls._exchange(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            UpstreamServiceError,
            "Failed to exchange refresh token for a new access token.",
        )
        return cls._from_token_response(
            payload,
            payload.get("refresh_token") or refresh_token,
            previous,
        )

    # Persistence --------------------------------------------------------

    def existing_owner(self) -> User | None:
        account = (
            self.account_model.objects.select_related("user")
            .filter(**self.account_lookup(self.claims))
            .first()
        )
        return account.user if account else None

    def persist_for_user(self, user: User) -> OAuthAccount:
        """Insert or update the account row and attach it to ``user``."""
        account, created = self.account_model.objects.update_or_create(
            **self.account_lookup(self.claims),
            defaults={
                "user": user,
                "access_token": self.access_token,
                "refresh_token": self.refresh_token,
                "expires_at": self.expires_at,
                **self.account_fields(),
            },
        )
        logger.info(
            "%s %s account for user %s",
            "Linked" if created else "Updated",
            self.provider,
            user.pk,
        )
        return account

    @classmethod
    def authorization_headers(cls, account: OAuthAccount) -> dict[str, str]:
        """Headers for calling the provider API as ``account``.

        The access token is renewed and persisted first when it is about to
        expire.
        """
        if timezone.now() + REFRESH_BUFFER > account.expires_at:
            renewed = cls.renew(account.refresh_token, cls.claims_of(account))
            fresh = renewed.persist_for_user(account.user)
            account.access_token = fresh.access_token
            account.refresh_token = fresh.refresh_token
            account.expires_at = fresh.expires_at
        return {
            "Authorization": f"Bearer {account.access_token}",
            **cls.extra_headers(),
        }


class GoogleAccountHelper(OAuthAccountHelper):
    provider = "google"
    auth_url = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url = "https://oauth2.googleapis.com/token"  # noqa: S105
    account_model = GoogleAccount
    basic_auth = True

    @classmethod
    def decode_claims(cls, access_token, payload, previous):
        id_token = payload.get("id_token")
        if not id_token:
            if previous:
                return previous
            msg = "Google did not return an id_token."
            raise UpstreamServiceError(msg)
        try:
            # The token comes straight from Google's token endpoint over TLS.
            decoded = jwt.decode(id_token, options={"verify_signature": False})
        except jwt.PyJWTError as exc:
            msg = "Google returned an undecodable id_token."
            raise UpstreamServiceError(msg) from exc
        if not decoded.get("sub"):
            msg = "Google id_token has no subject."
            raise UpstreamServiceError(msg)
        return {"sub": decoded["sub"], "email": decoded.get("email", "")}

    @classmethod
    def account_lookup(cls, claims):
        return {"sub": claims["sub"]}

    def account_fields(self):
        return {"email": self.claims["email"]}

    @classmethod
    def claims_of(cls, account):
        return {"sub": account.sub, "email": account.email}


class TwitchAccountHelper(OAuthAccountHelper):
    provider = "twitch"
    auth_url = "https://id.twitch.tv/oauth2/authorize"
    token_url = "https://id.twitch.tv/oauth2/token"  # noqa: S105
    account_model = TwitchAccount

    @classmethod
    def extra_headers(cls):
        return {"Client-Id": cls.client_id()}

    @classmethod
    def decode_claims(cls, access_token, payload, previous):
        # Twitch identifies the account through the Helix users endpoint.
        data = helix_get(
            "/users",
            {"Authorization": f"Bearer {access_token}", **cls.extra_headers()},
        )
        users = data.get("data") or []
        if not users:
            msg = "Twitch did not return the authorized user."
            raise UpstreamServiceError(msg)
        user = users[0]
        return {
            "id": str(user["id"]),
            "login": user.get("login", ""),
            "display_name": user.get("display_name", ""),
        }

    @classmethod
    def account_lookup(cls, claims):
        return {"twitch_id": claims["id"]}

    def account_fields(self):
        return {
            "login": self.claims["login"],
            "display_name": self.claims["display_name"],
        }

    @classmethod
    def claims_of(cls, account):
        return {
            "id": account.twitch_id,
            "login": account.login,
            "display_name": account.display_name,
        }


def helix_get(path: str, headers: dict[str, str]) -> dict[str, Any]:
    try:
        data = request_json(f"{TWITCH_HELIX_URL}{path}", headers=headers, timeout=_timeout())
    except HttpError as exc:
        logger.warning("Twitch %s failed: %s", path, exc)
        msg = "Twitch API request failed."
        raise UpstreamServiceError(msg) from exc
    return data if isinstance(data, dict) else {}


PROVIDERS: dict[str, type[OAuthAccountHelper]] = {
    GoogleAccountHelper.provider: GoogleAccountHelper,
    TwitchAccountHelper.provider: TwitchAccountHelper,
}
