"""Liveness endpoint reporting the state of the backing services.

``ok`` when every component answers, ``degraded`` when only some do and
``down`` when none do; anything but ``ok`` is served as a 503.
"""

from __future__ import annotations

from typing import Any

import redis
from django.conf import settings
from django.db import connection
from django.http import JsonResponse

import halogin

REDIS_TIMEOUT = 0.5


def check_db() -> dict[str, Any]:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    return {"ok": True, "vendor": connection.vendor}


def check_redis() -> dict[str, Any]:
    url = getattr(settings, "REDIS_URL", None)
    if not url:
        return {"ok": False, "error": "REDIS_URL not configured"}
    try:
        client = redis.Redis.from_url(
            url,
            socket_timeout=REDIS_TIMEOUT,
            socket_connect_timeout=REDIS_TIMEOUT,
        )
        client.ping()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    return {"ok": True}


CHECKS = {"db": check_db, "redis": check_redis}


def health(request):
    components = {name: check() for name, check in CHECKS.items()}
    healthy = [c.get("ok", False) for c in components.values()]

    if all(healthy):
        status = "ok"
    elif any(healthy):
        status = "degraded"
    else:
        status = "down"

    return JsonResponse(
        {"status": status, "version": halogin.__version__, "components": components},
        status=200 if status == "ok" else 503,
    )
