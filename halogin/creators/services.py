from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from halogin.creators.models import CreatorProfile
from halogin.integrations.embeddings.client import encode_or_fail
from halogin.storage.images import store_public_image

if TYPE_CHECKING:  # import for type checking only
    from halogin.storage.images import ImageForm
    from halogin.users.models import User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "given_name",
    "family_name",
    "pronouns",
    "profile_desc",
    "content_desc",
    "audience_desc",
)
PFP_FOLDER = "pfp"


def upsert_creator_profile(user: User, form: ImageForm) -> CreatorProfile:
    """Create or replace the creator profile of ``user``.

    The previous picture is kept when the form carries no new one.
    """
    values = {name: form.fields[name] for name in PROFILE_FIELDS}
    draft = CreatorProfile(user=user, **values)
    embedding = encode_or_fail(draft.embedding_text)
    pfp_path = store_public_image(
        PFP_FOLDER, user.pk, form.get("pfp_hidden"), form.image
    )

    defaults = {**values, "embedding": embedding}
    if pfp_path:
        defaults["pfp_path"] = pfp_path
    with transaction.atomic():
        profile, created = CreatorProfile.objects.update_or_create(
            user=user,
            defaults=defaults,
        )
    logger.info(
        "%s creator profile for user %s",
        "Created" if created else "Updated",
        user.pk,
    )
    return profile
