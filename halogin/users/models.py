import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import CharField
from django.db.models import EmailField
from django.utils.translation import gettext_lazy as _


def generate_username() -> str:
    return f"user-{uuid.uuid4().hex[:16]}"


class User(AbstractUser):
    """
    Default custom user model for halogin.

    Users never pick a username or password: accounts are created from an
    OAuth sign-in, so the username is generated and the password is unusable.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = CharField(
        _("username"),
        max_length=150,
        unique=True,
        default=generate_username,
    )
    # First and last name do not cover name patterns around the globe
    name = CharField(_("Full Name"), blank=True, max_length=255)
    email = EmailField(_("email address"), blank=True)
    first_name = CharField(_("First Name"), max_length=150, blank=True)
    last_name = CharField(_("Last Name"), max_length=150, blank=True)
    # Audit timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        # Automatically build the full name
        full_name = f"{self.first_name} {self.last_name}".strip()
        self.name = full_name
        super().save(*args, **kwargs)

    @property
    def has_profile(self) -> bool:
        """Whether the user finished onboarding as a creator or a company user."""
        return (
            hasattr(self, "creator_profile") or hasattr(self, "company_user_profile")
        )
