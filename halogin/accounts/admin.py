from django.contrib import admin

from halogin.accounts import models


@admin.register(models.GoogleAccount)
class GoogleAccountAdmin(admin.ModelAdmin):
    list_display = ["sub", "email", "user", "expires_at"]
    search_fields = ["email", "sub"]
    exclude = ["access_token", "refresh_token"]


@admin.register(models.TwitchAccount)
class TwitchAccountAdmin(admin.ModelAdmin):
    list_display = ["twitch_id", "login", "display_name", "user", "expires_at"]
    search_fields = ["login", "display_name"]
    exclude = ["access_token", "refresh_token"]
