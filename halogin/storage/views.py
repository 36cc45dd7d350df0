"""Public download of stored profile pictures and company logos."""

from __future__ import annotations

import logging
import mimetypes

from django.core.files.storage import default_storage
from django.http import FileResponse
from django.http import Http404
from django.http import HttpResponseBadRequest
from django.views.decorators.http import require_GET

from .images import image_name

logger = logging.getLogger(__name__)


@require_GET
def public_image(request, folder: str, name: str, shard: str | None = None):
    """Stream ``<folder>/<shard>/<name>`` from storage.

    The shard is the first character of the owner id and may be left out of
    the URL, in which case it is derived from ``name``.
    """
    owner, _, extension = name.lower().rpartition(".")
    if shard is not None and shard.lower() != owner[0]:
        raise Http404("File not found")

    path = image_name(folder, owner, extension)
    if not default_storage.exists(path):
        logger.debug("Public image %s not found", path)
        raise Http404("File not found")

    content_type, _ = mimetypes.guess_type(path)
    if not content_type:
        return HttpResponseBadRequest("MIME type couldn't be determined")

    response = FileResponse(default_storage.open(path, "rb"), content_type=content_type)
    response["Content-Disposition"] = f'inline; filename="{owner}.{extension}"'
    return response
