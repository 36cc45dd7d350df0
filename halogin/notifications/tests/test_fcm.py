from datetime import datetime
from datetime import timezone
from unittest import mock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from halogin.integrations.http import HttpStatusError
from halogin.notifications import fcm
from halogin.notifications.fcm import FcmClient
from halogin.notifications.fcm import FcmError
from halogin.notifications.fcm import FcmInvalidToken
from halogin.notifications.fcm import FcmNotConfiguredError
from halogin.notifications.fcm import FcmRetryable
from halogin.notifications.fcm import parse_retry_after
from halogin.notifications.push import PushMessage


@pytest.fixture(scope="module")
def service_account():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    return {
        "client_email": "push@halogin.iam.gserviceaccount.com",
        "private_key": pem,
        "private_key_id": "key-1",
        "token_uri": "https://oauth2.googleapis.com/token",
    }


def status_error(status, body=b"{}", headers=None):
    return HttpStatusError(status, body, headers or {})


class TestParseRetryAfter:
    def test_seconds(self):
        assert parse_retry_after("120") == 120.0

    def test_http_date(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert parse_retry_after("Mon, 01 Jan 2024 12:00:30 GMT", now=now) == 30.0

    def test_never_negative(self):
        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert parse_retry_after("-5") == 0.0
        assert parse_retry_after("Mon, 01 Jan 2024 11:00:00 GMT", now=now) == 0.0

    @pytest.mark.parametrize("value", [None, "", "soon"])
    def test_unusable(self, value):
        assert parse_retry_after(value) is None


class TestPushMessage:
    def test_fcm_message(self):
        push = PushMessage("Title", "Body", {"room_id": "r1", "count": 2}, "/chat/r1")

        assert push.as_fcm_message("tok") == {
            "token": "tok",
            "notification": {"title": "Title", "body": "Body"},
            "data": {"room_id": "r1", "count": "2"},
            "webpush": {"fcm_options": {"link": "/chat/r1"}},
        }

    def test_survives_task_serialization(self):
        push = PushMessage("Title", "Body", {"id": "1"})
        assert PushMessage.from_dict(push.as_dict()) == push


class TestFcmClient:
    @pytest.fixture
    def client(self, service_account):
        return FcmClient("halogin-test", service_account)

    def test_access_token_is_cached(self, client, monkeypatch):
        request_json = mock.Mock(return_value={"access_token": "ya29", "expires_in": 3600})
        monkeypatch.setattr(fcm, "request_json", request_json)

        assert client.access_token() == "ya29"
        assert client.access_token() == "ya29"

        request_json.assert_called_once()
        form = request_json.call_args.kwargs["form"]
        assert form["grant_type"] == fcm.JWT_BEARER_GRANT

    def test_send(self, client, monkeypatch):
        monkeypatch.setattr(client, "access_token", lambda: "ya29")
        request_json = mock.Mock(return_value={"name": "projects/halogin-test/messages/1"})
        monkeypatch.setattr(fcm, "request_json", request_json)

        name = client.send({"token": "tok"})

        assert name == "projects/halogin-test/messages/1"
        args, kwargs = request_json.call_args
        assert args[0] == "https://fcm.googleapis.com/v1/projects/halogin-test/messages:send"
        assert kwargs["json_body"] == {"message": {"token": "tok"}}
        assert kwargs["headers"] == {"Authorization": "Bearer ya29"}

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (status_error(404), FcmInvalidToken),
            (
                status_error(400, b'{"error": {"status": "INVALID_ARGUMENT"}}'),
                FcmInvalidToken,
            ),
            (
                status_error(
                    400,
                    b'{"error": {"status": "NOT_FOUND", "details": [{"errorCode": "UNREGISTERED"}]}}',
                ),
                FcmInvalidToken,
            ),
            (status_error(503), FcmRetryable),
            (status_error(429), FcmRetryable),
            (status_error(403), FcmError),
            (status_error(400, b"not json"), FcmError),
        ],
    )
    def test_error_classification(self, client, monkeypatch, error, expected):
        monkeypatch.setattr(client, "access_token", lambda: "ya29")
        monkeypatch.setattr(fcm, "request_json", mock.Mock(side_effect=error))

        with pytest.raises(FcmError) as excinfo:
            client.send({"token": "tok"})

        assert type(excinfo.value) is expected

    def test_retry_after_is_carried(self, client, monkeypatch):
        monkeypatch.setattr(client, "access_token", lambda: "ya29")
        error = status_error(503, headers={"retry-after": "30"})
        monkeypatch.setattr(fcm, "request_json", mock.Mock(side_effect=error))

        with pytest.raises(FcmRetryable) as excinfo:
            client.send({"token": "tok"})

        assert excinfo.value.retry_after == 30.0

    def test_unauthorized_forgets_cached_token(self, client, monkeypatch):
        client._access_token = "stale"
        client._expires_at = float("inf")
        monkeypatch.setattr(fcm, "request_json", mock.Mock(side_effect=status_error(401)))

        with pytest.raises(FcmError):
            client.send({"token": "tok"})

        assert client._access_token is None


def test_not_configured(settings):
    settings.FCM_PROJECT_ID = ""
    with pytest.raises(FcmNotConfiguredError):
        FcmClient.from_settings()
