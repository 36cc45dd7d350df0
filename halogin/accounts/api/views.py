from __future__ import annotations

from typing import TYPE_CHECKING
from typing import ClassVar

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from halogin.accounts import services
from halogin.accounts.oauth import GoogleAccountHelper
from halogin.accounts.oauth import TwitchAccountHelper
from halogin.users.api.auth_views import set_session_cookies

from .serializers import LoginResponseSerializer
from .serializers import LoginSerializer
from .serializers import ProfilePhotoSerializer

if TYPE_CHECKING:  # import for type checking only
    from halogin.accounts.oauth import OAuthAccountHelper


class ProviderLoginView(APIView):
    """Finish an OAuth authorization-code flow.

    Anonymous callers are signed in (session cookies are set); signed-in
    callers get the provider account linked to them.
    """

    permission_classes = [AllowAny]
    helper: ClassVar[type[OAuthAccountHelper]]

    @extend_schema(request=LoginSerializer, responses={200: LoginResponseSerializer})
    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        current = request.user if request.user.is_authenticated else None

        result = services.sign_in(
            self.helper,
            current_user=current,
            **serializer.validated_data,
        )
        body = {
            "user_id": str(result.user.pk),
            "created": result.created,
            "redirect": "home" if result.user.has_profile else "build-profile",
        }
        response = Response(body, status=status.HTTP_200_OK)
        if result.session is not None:
            set_session_cookies(response, result.session)
        return response


class GoogleLoginView(ProviderLoginView):
    helper = GoogleAccountHelper


class TwitchLoginView(ProviderLoginView):
    helper = TwitchAccountHelper


class GoogleProfilePhotoView(APIView):
    @extend_schema(responses={200: ProfilePhotoSerializer(many=True)})
    def get(self, request, *args, **kwargs):
        return Response(services.google_profile_photos(request.user))


class YoutubeChannelView(APIView):
    def get(self, request, *args, **kwargs):
        return Response(services.youtube_channels(request.user))


class TwitchAccountView(APIView):
    def get(self, request, *args, **kwargs):
        return Response(services.twitch_accounts(request.user))


class LinkedAccountsView(APIView):
    def get(self, request, *args, **kwargs):
        return Response(services.linked_accounts(request.user))
