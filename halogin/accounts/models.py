from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class OAuthAccount(models.Model):
    """Tokens of one external account linked to a user."""

    access_token = models.TextField()
    refresh_token = models.TextField()
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class GoogleAccount(OAuthAccount):
    sub = models.CharField(_("Google subject"), max_length=255, primary_key=True)
    email = models.EmailField(_("Google email"), db_index=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="google_accounts",
    )

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return self.email

    def meta(self) -> dict[str, str]:
        return {"sub": self.sub, "email": self.email}


class TwitchAccount(OAuthAccount):
    twitch_id = models.CharField(_("Twitch user id"), max_length=64, primary_key=True)
    login = models.CharField(max_length=255)
    display_name = models.CharField(max_length=255, blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="twitch_accounts",
    )

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return self.login

    def meta(self) -> dict[str, str]:
        return {
            "id": self.twitch_id,
            "login": self.login,
            "display_name": self.display_name,
        }
