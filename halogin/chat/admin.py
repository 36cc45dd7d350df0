from django.contrib import admin

from halogin.chat import models


class ChatMessageInline(admin.TabularInline):
    model = models.ChatMessage
    extra = 0
    raw_id_fields = ["from_user"]


@admin.register(models.ChatRoom)
class ChatRoomAdmin(admin.ModelAdmin):
    list_display = ["id", "company", "user", "created_at"]
    raw_id_fields = ["company", "user"]
    inlines = [ChatMessageInline]


@admin.register(models.ContractOffer)
class ContractOfferAdmin(admin.ModelAdmin):
    list_display = ["id", "message", "offered_payout"]
    raw_id_fields = ["message"]


@admin.register(models.ContractOfferUpdate)
class ContractOfferUpdateAdmin(admin.ModelAdmin):
    list_display = ["id", "offer", "update_kind"]
    list_filter = ["update_kind"]
    raw_id_fields = ["message", "offer"]
