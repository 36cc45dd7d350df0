import pytest

from halogin.notifications.push import PushMessage
from halogin.realtime.events.notify import notify_user
from halogin.realtime.events.notify import notify_users
from halogin.realtime.sessions import registry
from halogin.users.sessions import close_session
from halogin.users.sessions import open_session

PUSH = PushMessage("Title", "Body")


@pytest.mark.django_db
class TestNotifyUser:
    def test_event_reaches_every_page(self, user, sent_events):
        registry.add_page("s1", user.pk, "a")
        registry.add_page("s2", user.pk, "b")

        notify_user(user.pk, "demo", {"x": 1})

        assert sorted(sent_events) == [("a", "demo", {"x": 1}), ("b", "demo", {"x": 1})]

    def test_push_goes_to_sessions_nobody_looks_at(self, user, sent_events, queued_pushes):
        viewed = open_session(user)
        hidden = open_session(user)
        offline = open_session(user)
        registry.add_page(viewed.session_id, user.pk, "a")
        registry.add_page(hidden.session_id, user.pk, "b")
        registry.set_viewing("b", False)

        notify_user(user.pk, "demo", {}, PUSH)

        assert {event[0] for event in sent_events} == {"a", "b"}
        assert sorted(sid for sid, _ in queued_pushes) == sorted(
            [hidden.session_id, offline.session_id]
        )

    def test_closed_sessions_get_no_push(self, user, queued_pushes):
        session = open_session(user)
        close_session(session.session_id)

        notify_user(user.pk, "demo", {}, PUSH)

        assert queued_pushes == []

    def test_no_push_without_message(self, user, queued_pushes):
        open_session(user)
        notify_user(user.pk, "demo", {})
        assert queued_pushes == []

    def test_failing_page_does_not_stop_delivery(self, user, monkeypatch, caplog):
        delivered = []

        def emit(socket_id, event, data):
            if socket_id == "a":
                raise RuntimeError("socket gone")
            delivered.append(socket_id)

        monkeypatch.setattr("halogin.realtime.socketio.emit_to_page", emit)
        registry.add_page("s1", user.pk, "a")
        registry.add_page("s1", user.pk, "b")

        notify_user(user.pk, "demo", {})

        assert delivered == ["b"]
        assert "Failed to send demo to page a" in caplog.text

    def test_notify_users_dedupes(self, user, sent_events):
        registry.add_page("s1", user.pk, "a")
        notify_users([user.pk, str(user.pk)], "demo", {})
        assert len(sent_events) == 1
