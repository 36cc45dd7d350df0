import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _
from pgvector.django import VectorField

EMBEDDING_DIMENSIONS = 1536


class Company(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    full_name = models.CharField(max_length=255)
    banner_desc = models.TextField()
    logo_url = models.CharField(max_length=500, blank=True, default="")
    embedding = VectorField(dimensions=EMBEDDING_DIMENSIONS, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name_plural = _("companies")

    def __str__(self) -> str:
        return self.full_name

    @staticmethod
    def embedding_text_for(banner_desc: str) -> str:
        return f"Question: Who are we?\nAnswer: {banner_desc}"


class CompanyUser(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="company_memberships",
    )
    is_admin = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "user"],
                name="unique_company_member",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} @ {self.company_id}"


class CompanyUserProfile(models.Model):
    """Public identity of a user acting on behalf of a company."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="company_user_profile",
    )
    given_name = models.CharField(max_length=255)
    family_name = models.CharField(max_length=255)
    pronouns = models.CharField(max_length=64)
    pfp_path = models.CharField(max_length=500)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.given_name} {self.family_name}".strip()


class CompanyUserInvitation(models.Model):
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="invitations",
    )
    invited_google_email = models.EmailField(db_index=True)
    will_be_given_admin = models.BooleanField(default=False)
    from_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_company_invitations",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["invited_google_email", "company"],
                name="unique_company_invitation",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.invited_google_email} -> {self.company_id}"
