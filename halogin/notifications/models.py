from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _
from rest_framework_simplejwt.token_blacklist.models import OutstandingToken


class Notification(models.Model):
    class Type(models.TextChoices):
        INVITATION = "invitation", _("Invitation")
        CHAT_MESSAGE = "chat_message", _("Chat Message")
        CONTRACT = "contract", _("Contract")
        OTHER = "other", _("Other")

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(
        max_length=50, choices=Type.choices, default=Type.OTHER
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    related_link = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.title} - {self.recipient}"


class SessionFcmToken(models.Model):
    """Firebase registration token of the browser/device behind a session.

    Deleting the session (expiry pruning) deletes its tokens.
    """

    token = models.CharField(max_length=512, primary_key=True)
    session = models.ForeignKey(
        OutstandingToken,
        on_delete=models.CASCADE,
        related_name="fcm_tokens",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.token[:16]}... ({self.session_id})"
