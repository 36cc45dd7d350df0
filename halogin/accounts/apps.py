from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class AccountsConfig(AppConfig):
    name = "halogin.accounts"
    verbose_name = _("Linked accounts")
