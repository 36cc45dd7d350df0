from django.contrib import admin

from halogin.companies import models


class CompanyUserInline(admin.TabularInline):
    model = models.CompanyUser
    extra = 0


@admin.register(models.Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ["id", "full_name", "created_at"]
    search_fields = ["full_name", "banner_desc"]
    exclude = ["embedding"]
    inlines = [CompanyUserInline]


@admin.register(models.CompanyUserProfile)
class CompanyUserProfileAdmin(admin.ModelAdmin):
    list_display = ["user", "given_name", "family_name", "pronouns"]
    search_fields = ["given_name", "family_name"]


@admin.register(models.CompanyUserInvitation)
class CompanyUserInvitationAdmin(admin.ModelAdmin):
    list_display = [
        "invited_google_email",
        "company",
        "will_be_given_admin",
        "from_user",
    ]
    search_fields = ["invited_google_email"]
    list_filter = ["will_be_given_admin"]
