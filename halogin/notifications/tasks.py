import logging

from celery import shared_task

from halogin.notifications.fcm import FcmError
from halogin.notifications.fcm import FcmInvalidToken
from halogin.notifications.fcm import FcmRetryable
from halogin.notifications.fcm import get_client
from halogin.notifications.models import SessionFcmToken
from halogin.notifications.push import PushMessage

logger = logging.getLogger(__name__)


def deliver_push(token: str, message: dict) -> str:
    push = PushMessage.from_dict(message)
    return get_client().send(push.as_fcm_message(token))


@shared_task(bind=True, name="notifications.send_push", max_retries=5)
def send_push(self, token: str, message: dict) -> str | None:
    """Deliver one push message to one FCM registration token.

    Unregistered tokens are forgotten; throttled or failing servers are
    retried after the delay they asked for.
    """
    try:
        return deliver_push(token, message)
    except FcmInvalidToken:
        deleted, _ = SessionFcmToken.objects.filter(token=token).delete()
        logger.info("Dropped invalid FCM token (%s rows)", deleted)
    except FcmRetryable as exc:
        if exc.retry_after is None:
            logger.error("FCM delivery failed without a retry hint: %s", exc)  # noqa: TRY400
            return None
        raise self.retry(exc=exc, countdown=exc.retry_after) from exc
    except FcmError:
        logger.exception("FCM delivery failed")
    return None
