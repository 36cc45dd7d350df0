from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any

from django.db import transaction

from halogin.accounts.models import GoogleAccount
from halogin.accounts.models import TwitchAccount
from halogin.accounts.oauth import GoogleAccountHelper
from halogin.accounts.oauth import TwitchAccountHelper
from halogin.accounts.oauth import helix_get
from halogin.integrations.exceptions import UpstreamServiceError
from halogin.integrations.http import HttpError
from halogin.integrations.http import request_json
from halogin.users.models import User
from halogin.users.sessions import open_session

if TYPE_CHECKING:  # import for type checking only
    from halogin.accounts.oauth import OAuthAccountHelper
    from halogin.users.sessions import IssuedSession

logger = logging.getLogger(__name__)

PEOPLE_PHOTOS_URL = "https://people.googleapis.com/v1/people/me?personFields=photos"
YOUTUBE_CHANNELS_URL = (
    "https://www.googleapis.com/youtube/v3/channels"
    "?part=snippet,statistics&mine=true&maxResults=50"
)
YOUTUBE_COUNTERS = ("viewCount", "subscriberCount", "videoCount")


@dataclass
class SignInResult:
    user: User
    created: bool
    session: IssuedSession | None


def sign_in(
    helper_cls: type[OAuthAccountHelper],
    *,
    redirect_origin: str,
    code: str,
    keep_logged_in: bool,
    current_user: User | None,
) -> SignInResult:
    """Complete an OAuth login.

    A signed-in user gets the provider account attached and keeps their
    session. Otherwise the owner of the provider account is signed in, or a
    new user is created for it, and a new session is opened.
    """
    grant = helper_cls.from_code(redirect_origin, code)

    with transaction.atomic():
        if current_user is not None:
            grant.persist_for_user(current_user)
            return SignInResult(user=current_user, created=False, session=None)

        user = grant.existing_owner()
        created = user is None
        if created:
            user = User(email=grant.claims.get("email", ""))
            user.set_unusable_password()
            user.save()
            logger.info("Created user %s from %s sign-in", user.pk, grant.provider)
        grant.persist_for_user(user)
        session = open_session(user, keep_logged_in=keep_logged_in)
    return SignInResult(user=user, created=created, session=session)


def _provider_get(url: str, headers: dict[str, str]) -> dict[str, Any]:
    try:
        data = request_json(url, headers=headers)
    except HttpError as exc:
        logger.warning("Google API %s failed: %s", url, exc)
        msg = "Google API request failed."
        raise UpstreamServiceError(msg) from exc
    return data if isinstance(data, dict) else {}


def google_profile_photos(user: User) -> list[dict[str, Any]]:
    photos = []
    for account in GoogleAccount.objects.filter(user=user):
        headers = GoogleAccountHelper.authorization_headers(account)
        data = _provider_get(PEOPLE_PHOTOS_URL, headers)
        photos.extend(
            {
                "primary": bool((photo.get("metadata") or {}).get("primary", False)),
                "url": photo["url"],
            }
            for photo in data.get("photos", [])
            if photo.get("url")
        )
    return photos


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def youtube_channels(user: User) -> list[dict[str, Any]]:
    channels = []
    for account in GoogleAccount.objects.filter(user=user):
        headers = GoogleAccountHelper.authorization_headers(account)
        data = _provider_get(YOUTUBE_CHANNELS_URL, headers)
        for item in data.get("items", []):
            snippet = item.get("snippet") or {}
            statistics = item.get("statistics") or {}
            channels.append(
                {
                    "id": item.get("id"),
                    "snippet": {
                        "title": snippet.get("title", ""),
                        "customUrl": snippet.get("customUrl", ""),
                        "thumbnails": snippet.get("thumbnails", {}),
                    },
                    "statistics": {
                        key: _as_int(statistics.get(key)) for key in YOUTUBE_COUNTERS
                    },
                    "account": account.meta(),
                }
            )
    return channels


def twitch_accounts(user: User) -> list[dict[str, Any]]:
    accounts = []
    for account in TwitchAccount.objects.filter(user=user):
        headers = TwitchAccountHelper.authorization_headers(account)
        followers = helix_get(
            f"/channels/followers?broadcaster_id={account.twitch_id}",
            headers,
        )
        accounts.append({**account.meta(), "followers": _as_int(followers.get("total"))})
    return accounts


def linked_accounts(user: User) -> dict[str, list[dict[str, str]]]:
    return {
        "google": [a.meta() for a in GoogleAccount.objects.filter(user=user)],
        "twitch": [a.meta() for a in TwitchAccount.objects.filter(user=user)],
    }
