from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.tokens import AccessToken

from halogin.realtime import socketio
from halogin.users.sessions import close_session
from halogin.users.sessions import open_session


class TestExtractToken:
    def test_query_string_wins(self):
        environ = {"asgi.scope": {"query_string": b"EIO=4&token=from-query"}}
        assert socketio._extract_token(environ, {"token": "from-auth"}) == "from-query"

    def test_auth_payload(self):
        assert socketio._extract_token({"QUERY_STRING": "EIO=4"}, {"token": "from-auth"}) == "from-auth"

    def test_cookie_from_asgi_headers(self):
        environ = {
            "asgi.scope": {
                "query_string": b"",
                "headers": [(b"cookie", b"theme=dark; access_token=from-cookie")],
            }
        }
        assert socketio._extract_token(environ, None) == "from-cookie"

    def test_cookie_from_wsgi_environ(self):
        environ = {"HTTP_COOKIE": "access_token=from-cookie"}
        assert socketio._extract_token(environ, None) == "from-cookie"

    def test_nothing(self):
        assert socketio._extract_token({}, None) is None


class TestConnect:
    def connect(self, token):
        environ = {"QUERY_STRING": f"token={token}" if token else ""}
        return async_to_sync(socketio.connect)("sock-1", environ, None)

    def test_missing_token(self):
        with pytest.raises(ConnectionRefusedError, match="unauthorized"):
            self.connect(None)

    @pytest.mark.django_db
    def test_garbage_token(self):
        with pytest.raises(ConnectionRefusedError, match="unauthorized"):
            self.connect("garbage")

    @pytest.mark.django_db
    def test_expired_token(self, user):
        token = AccessToken.for_user(user)
        token.set_exp(lifetime=timedelta(seconds=-30))

        with pytest.raises(ConnectionRefusedError, match="jwt_expired"):
            self.connect(str(token))


@pytest.mark.django_db
class TestIdentity:
    def test_live_session(self, user):
        session = open_session(user)

        identity = async_to_sync(socketio._identity_from_access_token)(session.access)

        assert identity == socketio.SocketIdentity(str(user.pk), session.session_id)

    def test_closed_session(self, user):
        session = open_session(user)
        close_session(session.session_id)

        with pytest.raises(AuthenticationFailed):
            async_to_sync(socketio._identity_from_access_token)(session.access)
