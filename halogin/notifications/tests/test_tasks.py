from unittest import mock

import pytest
from rest_framework_simplejwt.token_blacklist.models import OutstandingToken

from halogin.notifications import tasks
from halogin.notifications.fcm import FcmError
from halogin.notifications.fcm import FcmInvalidToken
from halogin.notifications.fcm import FcmRetryable
from halogin.notifications.models import SessionFcmToken
from halogin.notifications.push import PushMessage
from halogin.notifications.push import queue_session_push
from halogin.users.sessions import open_session

MESSAGE = PushMessage("Title", "Body").as_dict()


class RetryRequested(Exception):
    pass


@pytest.fixture
def fcm_token(user):
    session = open_session(user)
    return SessionFcmToken.objects.create(
        token="device-1",
        session=OutstandingToken.objects.get(jti=session.session_id),
    )


@pytest.mark.django_db
class TestSendPush:
    def test_delivers(self, monkeypatch):
        deliver = mock.Mock(return_value="projects/p/messages/1")
        monkeypatch.setattr(tasks, "deliver_push", deliver)

        assert tasks.send_push("device-1", MESSAGE) == "projects/p/messages/1"
        deliver.assert_called_once_with("device-1", MESSAGE)

    def test_invalid_token_is_forgotten(self, monkeypatch, fcm_token):
        monkeypatch.setattr(tasks, "deliver_push", mock.Mock(side_effect=FcmInvalidToken("gone")))

        tasks.send_push("device-1", MESSAGE)

        assert not SessionFcmToken.objects.exists()

    def test_retries_after_requested_delay(self, monkeypatch, fcm_token):
        monkeypatch.setattr(
            tasks, "deliver_push", mock.Mock(side_effect=FcmRetryable("busy", retry_after=30.0))
        )
        retry = mock.Mock(return_value=RetryRequested())
        monkeypatch.setattr(tasks.send_push, "retry", retry)

        with pytest.raises(RetryRequested):
            tasks.send_push("device-1", MESSAGE)

        assert retry.call_args.kwargs["countdown"] == 30.0
        assert SessionFcmToken.objects.exists()

    def test_no_retry_without_hint(self, monkeypatch):
        monkeypatch.setattr(tasks, "deliver_push", mock.Mock(side_effect=FcmRetryable("busy")))
        retry = mock.Mock()
        monkeypatch.setattr(tasks.send_push, "retry", retry)

        assert tasks.send_push("device-1", MESSAGE) is None
        retry.assert_not_called()

    def test_other_errors_are_logged(self, monkeypatch, caplog):
        monkeypatch.setattr(tasks, "deliver_push", mock.Mock(side_effect=FcmError("denied")))

        assert tasks.send_push("device-1", MESSAGE) is None
        assert "FCM delivery failed" in caplog.text


@pytest.mark.django_db
class TestQueueSessionPush:
    def test_skipped_when_not_configured(self, settings, fcm_token):
        settings.FCM_PROJECT_ID = ""
        assert queue_session_push(fcm_token.session.jti, PushMessage("a", "b")) == 0

    def test_one_task_per_token(self, settings, fcm_token, monkeypatch):
        settings.FCM_PROJECT_ID = "halogin-test"
        SessionFcmToken.objects.create(token="device-2", session=fcm_token.session)
        delay = mock.Mock()
        monkeypatch.setattr(tasks.send_push, "delay", delay)

        queued = queue_session_push(fcm_token.session.jti, PushMessage("a", "b"))

        assert queued == 2
        assert {c.args[0] for c in delay.call_args_list} == {"device-1", "device-2"}
