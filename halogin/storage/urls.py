from django.urls import re_path

from .views import public_image

FOLDER = r"(?P<folder>pfp|logo)"
NAME = r"(?P<name>[0-9A-Za-z_-]+\.[0-9A-Za-z]+)"

urlpatterns = [
    re_path(rf"^static/{FOLDER}/(?P<shard>[0-9A-Za-z_-])/{NAME}$", public_image, name="storage-image"),
    re_path(rf"^static/{FOLDER}/{NAME}$", public_image, name="storage-image-unsharded"),
]
