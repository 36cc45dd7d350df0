"""
ASGI config for the halogin project.

It exposes the ASGI callable as a module-level variable named ``application``.
HTTP requests go to Django; the Socket.IO endpoint carrying RPC calls and
pushed events is mounted at ``/ws/``.

"""

import os
import sys
from pathlib import Path

from django.core.asgi import get_asgi_application

# This allows easy placement of apps within the interior
# halogin directory.
BASE_DIR = Path(__file__).resolve(strict=True).parent.parent
sys.path.append(str(BASE_DIR / "halogin"))

if "DJANGO_SETTINGS_MODULE" not in os.environ:
    build_env = os.environ.get("BUILD_ENV", "production").lower()
    default_settings = (
        "config.settings.local"
        if build_env == "local"
        else "config.settings.production"
    )
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", default_settings)

django_application = get_asgi_application()

from socketio import ASGIApp  # noqa: E402

from halogin.realtime.socketio import sio  # noqa: E402

# Socket.IO handles both Engine.IO long-polling and websocket upgrades,
# so it wraps the Django app instead of sitting behind a router.
application = ASGIApp(
    sio,
    other_asgi_app=django_application,
    socketio_path="ws",
)
