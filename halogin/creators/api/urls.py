from django.urls import path

from .views import CreatorProfileView
from .views import CreatorSearchView

urlpatterns = [
    path("profile", CreatorProfileView.as_view(), name="creator-profile"),
    path("search", CreatorSearchView.as_view(), name="creator-search"),
]
