from django.conf import settings
from django.db import models
from pgvector.django import VectorField

EMBEDDING_DIMENSIONS = 1536


class CreatorProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="creator_profile",
    )
    given_name = models.CharField(max_length=255)
    family_name = models.CharField(max_length=255)
    pronouns = models.CharField(max_length=64)
    profile_desc = models.TextField()
    content_desc = models.TextField()
    audience_desc = models.TextField()
    pfp_path = models.CharField(max_length=500, blank=True, default="")
    embedding = VectorField(dimensions=EMBEDDING_DIMENSIONS, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.given_name} {self.family_name}".strip()

    @property
    def embedding_text(self) -> str:
        return (
            f"# Content Creator Profile Description:\n{self.profile_desc}\n\n"
            f"# Content Creator Content Description:\n{self.content_desc}\n\n"
            f"# Content Creator Audience Description:\n{self.audience_desc}"
        )
