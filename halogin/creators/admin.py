from django.contrib import admin

from halogin.creators import models


@admin.register(models.CreatorProfile)
class CreatorProfileAdmin(admin.ModelAdmin):
    list_display = ["user", "given_name", "family_name", "pronouns", "updated_at"]
    search_fields = ["given_name", "family_name", "profile_desc"]
    exclude = ["embedding"]
