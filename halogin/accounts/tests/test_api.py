from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import status

from halogin.accounts.models import GoogleAccount
from halogin.accounts.models import TwitchAccount
from halogin.accounts.oauth import GoogleAccountHelper
from halogin.creators.models import CreatorProfile

from .providers import google_token_response

User = get_user_model()

LOGIN = {"redirect_origin": "https://app.example.com", "code": "abc", "keep_logged_in": True}


@pytest.mark.django_db
class TestProviderLogin:
    def test_first_login_creates_user_and_session(self, api_client, provider):
        provider.route(GoogleAccountHelper.token_url, google_token_response())

        res = api_client.post("/api/v1/google/login", LOGIN, format="json")

        assert res.status_code == status.HTTP_200_OK
        assert res.data["created"] is True
        assert res.data["redirect"] == "build-profile"
        user = User.objects.get(pk=res.data["user_id"])
        assert user.email == "ada@example.com"
        assert not user.has_usable_password()
        assert res.cookies["access_token"].value
        assert res.cookies["refresh_token"]["max-age"]

    def test_second_login_reuses_owner(self, api_client, provider, user):
        GoogleAccount.objects.create(
            sub="google-sub-1",
            email="ada@example.com",
            user=user,
            access_token="a",
            refresh_token="r",
            expires_at=timezone.now(),
        )
        CreatorProfile.objects.create(
            user=user,
            given_name="Ada",
            family_name="Lovelace",
            pronouns="she/her",
            profile_desc="p",
            content_desc="c",
            audience_desc="a",
        )
        provider.route(GoogleAccountHelper.token_url, google_token_response())

        res = api_client.post(
            "/api/v1/google/login",
            {**LOGIN, "keep_logged_in": False},
            format="json",
        )

        assert res.data == {"user_id": str(user.pk), "created": False, "redirect": "home"}
        assert not res.cookies["refresh_token"]["max-age"]

    def test_signed_in_login_links_account(self, session_client, provider, user):
        provider.route(
            GoogleAccountHelper.token_url,
            google_token_response(sub="second-account", email="ada.work@example.com"),
        )

        res = session_client.post("/api/v1/google/login", LOGIN, format="json")

        assert res.status_code == status.HTTP_200_OK
        assert res.data["user_id"] == str(user.pk)
        assert "access_token" not in res.cookies
        assert GoogleAccount.objects.get(sub="second-account").user == user

    def test_bad_code(self, api_client, provider):
        from halogin.integrations.http import HttpStatusError

        provider.route(GoogleAccountHelper.token_url, HttpStatusError(400, b"{}", {}))

        res = api_client.post("/api/v1/google/login", LOGIN, format="json")

        assert res.status_code == status.HTTP_400_BAD_REQUEST
        assert User.objects.count() == 0


@pytest.mark.django_db
class TestProviderData:
    def _google(self, user):
        return GoogleAccount.objects.create(
            sub="google-sub-1",
            email="ada@example.com",
            user=user,
            access_token="valid",
            refresh_token="r",
            expires_at=timezone.now() + timedelta(hours=1),
        )

    def test_youtube_channels_coerce_statistics(self, session_client, provider, user):
        self._google(user)
        provider.route(
            "https://www.googleapis.com/youtube/v3/channels",
            {
                "items": [
                    {
                        "id": "UC1",
                        "snippet": {"title": "Ada builds", "customUrl": "@ada"},
                        "statistics": {"viewCount": "1200", "subscriberCount": "30"},
                    }
                ]
            },
        )

        res = session_client.get("/api/v1/google/youtube/channel")

        assert res.status_code == status.HTTP_200_OK
        channel = res.data[0]
        assert channel["statistics"] == {
            "viewCount": 1200,
            "subscriberCount": 30,
            "videoCount": 0,
        }
        assert channel["account"] == {"sub": "google-sub-1", "email": "ada@example.com"}

    def test_profile_photos(self, session_client, provider, user):
        self._google(user)
        provider.route(
            "https://people.googleapis.com/v1/people/me",
            {"photos": [{"url": "https://lh3.example.com/a.png", "metadata": {"primary": True}}]},
        )

        res = session_client.get("/api/v1/google/profile_photo")

        assert res.data == [{"primary": True, "url": "https://lh3.example.com/a.png"}]

    def test_twitch_account_followers(self, session_client, provider, user):
        TwitchAccount.objects.create(
            twitch_id="42",
            login="ada",
            display_name="Ada",
            user=user,
            access_token="valid",
            refresh_token="r",
            expires_at=timezone.now() + timedelta(hours=1),
        )
        provider.route("https://api.twitch.tv/helix/channels/followers", {"total": 77})

        res = session_client.get("/api/v1/twitch/account")

        assert res.data == [{"id": "42", "login": "ada", "display_name": "Ada", "followers": 77}]

    def test_linked_accounts(self, session_client, user):
        self._google(user)

        res = session_client.get("/api/v1/accounts/")

        assert res.data == {
            "google": [{"sub": "google-sub-1", "email": "ada@example.com"}],
            "twitch": [],
        }
