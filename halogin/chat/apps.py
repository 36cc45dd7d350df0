from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class ChatConfig(AppConfig):
    name = "halogin.chat"
    verbose_name = _("Chat")

    def ready(self):
        from halogin.chat.rpc import chat_methods  # noqa: PLC0415
        from halogin.realtime.rpc import root  # noqa: PLC0415

        if "chat.create" not in root:
            root.add_scoped("chat", chat_methods)
