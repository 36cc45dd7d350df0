from django.conf import settings
from django.urls import include
from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from halogin.notifications.api.views import NotificationViewSet
from halogin.users.api.auth_views import CookieOnlyJWTRefreshView
from halogin.users.api.auth_views import LogoutView
from halogin.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)
router.register("notifications", NotificationViewSet, basename="notifications")


app_name = "api"
urlpatterns = [
    path("auth/logout/", LogoutView.as_view(), name="auth-logout"),
    path("auth/refresh/", CookieOnlyJWTRefreshView.as_view(), name="auth-refresh"),
    path("creator/", include("halogin.creators.api.urls")),
    path("company/", include("halogin.companies.api.urls")),
    path("storage/", include("halogin.storage.urls")),
    path("", include("halogin.accounts.api.urls")),
    *router.urls,
]
