import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class ContractStatus(models.TextChoices):
    ACCEPTED_BY_CREATOR = "AcceptedByCreator", _("Accepted by creator")
    WITHDRAWN_BY_COMPANY = "WithdrawnByCompany", _("Withdrawn by company")
    CANCELLED_BY_CREATOR = "CancelledByCreator", _("Cancelled by creator")
    FINISHED_BY_CREATOR = "FinishedByCreator", _("Finished by creator")
    APPROVED_BY_COMPANY = "ApprovedByCompany", _("Approved by company")


class ChatRoom(models.Model):
    """Conversation between a company (all of its members) and one user."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.CASCADE,
        related_name="chat_rooms",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_rooms",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["company", "user"], name="unique_chat_room"),
        ]

    def __str__(self):
        return f"{self.company_id} <-> {self.user_id}"


class ChatMessage(models.Model):
    room = models.ForeignKey(ChatRoom, on_delete=models.CASCADE, related_name="messages")
    from_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_messages",
    )
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.from_user_id}: {self.content[:40]}"


class ChatLastSeen(models.Model):
    room = models.ForeignKey(ChatRoom, on_delete=models.CASCADE, related_name="last_seen")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_last_seen",
    )
    last_message_seen = models.ForeignKey(
        ChatMessage,
        on_delete=models.CASCADE,
        related_name="+",
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["room", "user"], name="unique_chat_last_seen"),
        ]


class ContractOffer(models.Model):
    message = models.OneToOneField(
        ChatMessage,
        on_delete=models.CASCADE,
        related_name="contract_offer",
    )
    # Amount in cents.
    offered_payout = models.BigIntegerField()

    def __str__(self):
        return f"Offer {self.pk} ({self.offered_payout} cents)"

    @property
    def current_status(self) -> str | None:
        latest = self.updates.order_by("-id").first()
        return latest.update_kind if latest else None


class ContractOfferUpdate(models.Model):
    message = models.OneToOneField(
        ChatMessage,
        on_delete=models.CASCADE,
        related_name="contract_update",
    )
    offer = models.ForeignKey(ContractOffer, on_delete=models.CASCADE, related_name="updates")
    update_kind = models.CharField(max_length=32, choices=ContractStatus.choices)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"Offer {self.offer_id} -> {self.update_kind}"
