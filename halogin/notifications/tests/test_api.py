import pytest
from rest_framework import status

from halogin.notifications.models import Notification
from halogin.notifications.models import SessionFcmToken
from halogin.notifications.services import create_notification

URL = "/api/v1/notifications/"


@pytest.mark.django_db
class TestNotificationApi:
    def test_lists_own_notifications(self, session_client, user, make_user):
        create_notification(user.pk, "Hi", "For you")
        create_notification(make_user(email="b@example.com").pk, "Hi", "Not for you")

        res = session_client.get(URL)

        assert res.status_code == status.HTTP_200_OK
        assert [n["message"] for n in res.data["results"]] == ["For you"]
        assert res.data["results"][0]["unread"] is True

    def test_filters(self, session_client, user):
        create_notification(user.pk, "a", "invite", Notification.Type.INVITATION)
        read = create_notification(user.pk, "b", "other")
        read.is_read = True
        read.save()

        res = session_client.get(URL, {"notification_type": "invitation"})
        assert [n["message"] for n in res.data["results"]] == ["invite"]

        res = session_client.get(URL, {"is_read": "true"})
        assert [n["message"] for n in res.data["results"]] == ["other"]

    def test_mark_read(self, session_client, user):
        notification = create_notification(user.pk, "a", "b")

        res = session_client.post(f"{URL}{notification.pk}/mark-read/")

        assert res.status_code == status.HTTP_204_NO_CONTENT
        notification.refresh_from_db()
        assert notification.is_read

    def test_mark_all_read(self, session_client, user):
        create_notification(user.pk, "a", "b")
        create_notification(user.pk, "c", "d")

        res = session_client.post(f"{URL}mark-all-read/")

        assert res.status_code == status.HTTP_204_NO_CONTENT
        assert not Notification.objects.filter(is_read=False).exists()

    def test_cannot_touch_others_notifications(self, session_client, make_user):
        other = create_notification(make_user(email="b@example.com").pk, "a", "b")

        assert session_client.delete(f"{URL}{other.pk}/").status_code == 404
        assert Notification.objects.filter(pk=other.pk).exists()

    def test_delete(self, session_client, user):
        notification = create_notification(user.pk, "a", "b")
        assert session_client.delete(f"{URL}{notification.pk}/").status_code == 204
        assert not Notification.objects.exists()


@pytest.mark.django_db
class TestFcmToken:
    def test_register_for_current_session(self, session_client):
        res = session_client.post(f"{URL}fcm-token/", {"token": "device-1"}, format="json")

        assert res.status_code == status.HTTP_204_NO_CONTENT
        assert SessionFcmToken.objects.get().session.jti == session_client.session_id

    def test_token_moves_to_newest_session(self, session_client, user, api_client):
        from halogin.users.sessions import open_session

        session_client.post(f"{URL}fcm-token/", {"token": "device-1"}, format="json")
        newer = open_session(user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {newer.access}")

        api_client.post(f"{URL}fcm-token/", {"token": "device-1"}, format="json")

        assert SessionFcmToken.objects.get().session.jti == newer.session_id

    def test_forget(self, session_client):
        session_client.post(f"{URL}fcm-token/", {"token": "device-1"}, format="json")

        res = session_client.delete(f"{URL}fcm-token/", {"token": "device-1"}, format="json")

        assert res.status_code == status.HTTP_204_NO_CONTENT
        assert not SessionFcmToken.objects.exists()

    def test_requires_a_login_session(self, api_client, user):
        api_client.force_authenticate(user)
        res = api_client.post(f"{URL}fcm-token/", {"token": "device-1"}, format="json")
        assert res.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestRealtimePublishing:
    def test_published_after_commit(
        self, user, sent_events, queued_pushes, django_capture_on_commit_callbacks
    ):
        from halogin.realtime.sessions import registry
        from halogin.users.sessions import open_session

        viewed = open_session(user)
        hidden = open_session(user)
        registry.add_page(viewed.session_id, user.pk, "sock-viewed")

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            notification = create_notification(
                user.pk, "Invitation", "Join us", Notification.Type.INVITATION, "/company/invites"
            )
        assert sent_events == []

        callbacks[0]()

        assert sent_events == [
            (
                "sock-viewed",
                "notification",
                {
                    "id": notification.pk,
                    "title": "Invitation",
                    "message": "Join us",
                    "type": "invitation",
                    "link": "/company/invites",
                },
            )
        ]
        [(session_id, push)] = queued_pushes
        assert session_id == hidden.session_id
        assert push.data == {"type": "invitation", "id": str(notification.pk)}
