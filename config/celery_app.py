import os
from datetime import timedelta

from celery import Celery
from celery.signals import setup_logging

# pytest and local dev set DJANGO_SETTINGS_MODULE themselves.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.production")

app = Celery("halogin")

# Celery settings live in Django settings under the CELERY_ prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

app.conf.beat_schedule = {
    "daily-maintenance": {
        "task": "users.daily_maintenance",
        "schedule": timedelta(days=1),
    },
}
# Push delivery retries on FCM back-off; keep it off the default queue.
app.conf.task_routes = {"notifications.send_push": {"queue": "push"}}


@setup_logging.connect
def config_loggers(*args, **kwargs):
    from logging.config import dictConfig  # noqa: PLC0415

    from django.conf import settings  # noqa: PLC0415

    dictConfig(settings.LOGGING)


app.autodiscover_tasks()
