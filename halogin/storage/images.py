from __future__ import annotations

import io
import logging
import urllib.parse
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from PIL import Image
from PIL import UnidentifiedImageError
from rest_framework.exceptions import ValidationError

from halogin.integrations.http import HttpError
from halogin.integrations.http import ResponseTooLarge
from halogin.integrations.http import send

if TYPE_CHECKING:  # import for type checking only
    from django.core.files.uploadedfile import UploadedFile

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024
PREFERRED_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "GIF": "gif", "WEBP": "webp"}
REMOTE_SCHEMES = ("http", "https")


@dataclass
class LoadedImage:
    image: Image.Image
    format: str

    @property
    def extension(self) -> str:
        if self.format in PREFERRED_EXTENSIONS:
            return PREFERRED_EXTENSIONS[self.format]
        for ext, fmt in Image.registered_extensions().items():
            if fmt == self.format:
                return ext.lstrip(".")
        return self.format.lower()


def format_for_extension(ext: str) -> str | None:
    return Image.registered_extensions().get(f".{ext.lower()}")


def format_for_content_type(content_type: str) -> str | None:
    Image.init()
    for fmt, mime in Image.MIME.items():
        if mime == content_type:
            return fmt
    return None


def load_image(data: bytes, fmt: str) -> LoadedImage:
    if len(data) > MAX_IMAGE_BYTES:
        msg = "Image is too large."
        raise ValidationError(msg)
    try:
        image = Image.open(io.BytesIO(data), formats=[fmt])
        image.load()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
    ) as exc:
        msg = f"Could not read the image as {fmt}."
        raise ValidationError(msg) from exc
    return LoadedImage(image=image, format=fmt)


@dataclass
class ImageForm:
    """Text fields plus at most one image parsed from a multipart request."""

    fields: dict[str, str] = field(default_factory=dict)
    image: LoadedImage | None = None

    @classmethod
    def from_request(cls, request) -> ImageForm:
        form = cls()
        for name in request.data:
            if name in request.FILES:
                continue
            value = request.data.get(name)
            if isinstance(value, str):
                form.fields[name] = value

        uploads = [f for f in request.FILES.values() if f.name]
        if len(uploads) > 1:
            msg = "Only one image may be uploaded."
            raise ValidationError(msg)
        if uploads:
            form.image = cls._load_upload(uploads[0])
        return form

    @staticmethod
    def _load_upload(upload: UploadedFile) -> LoadedImage:
        _, dot, ext = upload.name.rpartition(".")
        if not dot or not ext:
            msg = f"File name: {upload.name} has no extension"
            raise ValidationError(msg)
        fmt = format_for_extension(ext)
        if fmt is None:
            msg = f"Could not figure out image format from extension: {ext}"
            raise ValidationError(msg)
        return load_image(upload.read(), fmt)

    def missing_fields(self, required) -> list[str]:
        return [name for name in required if name not in self.fields]

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.fields.get(name, default)


def fetch_remote_image(url: str) -> LoadedImage:
    """Download an image; the response must carry an image Content-Type."""
    if urllib.parse.urlsplit(url).scheme.lower() not in REMOTE_SCHEMES:
        msg = "Image URL must use http or https."
        raise ValidationError(msg)
    try:
        resp = send(
            url,
            headers={"Accept": "image/*"},
            timeout=getattr(settings, "REMOTE_IMAGE_TIMEOUT", 10.0),
            max_bytes=MAX_IMAGE_BYTES,
        )
    except ResponseTooLarge as exc:
        msg = "Image is too large."
        raise ValidationError(msg) from exc
    except HttpError as exc:
        msg = "Could not fetch the image."
        raise ValidationError(msg) from exc
    fmt = format_for_content_type(resp.content_type)
    if fmt is None:
        msg = f"Unsupported image content type: {resp.content_type or 'missing'}"
        raise ValidationError(msg)
    return load_image(resp.body, fmt)


def _thumbnail_bytes(loaded: LoadedImage) -> bytes:
    image = loaded.image.copy()
    image.thumbnail(getattr(settings, "THUMBNAIL_SIZE", (400, 400)))
    if loaded.format == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buf = io.BytesIO()
    image.save(buf, format=loaded.format)
    return buf.getvalue()


def image_name(folder: str, owner_id, extension: str) -> str:
    owner = str(owner_id).lower()
    return f"{folder}/{owner[0]}/{owner}.{extension}"


def _delete_previous(folder: str, owner_id, extension: str) -> None:
    """Remove the owner's stored picture under any extension."""
    owner = str(owner_id).lower()
    directory = f"{folder}/{owner[0]}"
    if not default_storage.exists(directory):
        return
    _, files = default_storage.listdir(directory)
    for filename in files:
        stem, _, ext = filename.rpartition(".")
        if stem == owner and ext:
            default_storage.delete(f"{directory}/{filename}")
            if ext != extension:
                logger.debug("Removed stale %s picture %s", folder, filename)


def store_public_image(
    folder: str,
    owner_id,
    hidden_url: str | None,
    image: LoadedImage | None,
) -> str | None:
    """Thumbnail and store an image, returning its public path.

    An image URL takes precedence over an uploaded file. Returns None when
    neither is given.
    """
    if hidden_url:
        image = fetch_remote_image(hidden_url)
    if image is None:
        return None

    name = image_name(folder, owner_id, image.extension)
    _delete_previous(folder, owner_id, image.extension)
    saved = default_storage.save(name, ContentFile(_thumbnail_bytes(image)))
    logger.info("Stored %s image for %s at %s", folder, owner_id, saved)
    return default_storage.url(saved)
