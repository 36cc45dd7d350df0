from django.urls import path

from .views import GoogleLoginView
from .views import GoogleProfilePhotoView
from .views import LinkedAccountsView
from .views import TwitchAccountView
from .views import TwitchLoginView
from .views import YoutubeChannelView

urlpatterns = [
    path("google/login", GoogleLoginView.as_view(), name="google-login"),
    path(
        "google/profile_photo",
        GoogleProfilePhotoView.as_view(),
        name="google-profile-photo",
    ),
    path(
        "google/youtube/channel",
        YoutubeChannelView.as_view(),
        name="google-youtube-channel",
    ),
    path("twitch/login", TwitchLoginView.as_view(), name="twitch-login"),
    path("twitch/account", TwitchAccountView.as_view(), name="twitch-account"),
    path("accounts/", LinkedAccountsView.as_view(), name="linked-accounts"),
]
