from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class NotificationsConfig(AppConfig):
    name = "halogin.notifications"
    verbose_name = _("Notifications")

    def ready(self):
        import halogin.notifications.signals  # noqa: F401, PLC0415
