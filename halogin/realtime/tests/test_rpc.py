import json

import pytest
from asgiref.sync import async_to_sync

from halogin.realtime.rpc import RpcContext
from halogin.realtime.rpc import RpcInvalidParams
from halogin.realtime.rpc import RpcRegistry
from halogin.realtime.rpc import handle_envelope
from halogin.realtime.rpc import root

handle = async_to_sync(handle_envelope)


@pytest.fixture
def methods():
    registry = RpcRegistry()

    @registry.register()
    def echo(ctx: RpcContext):
        return {"data": ctx.data, "user": ctx.user_id, "socket": ctx.socket_id}

    @registry.register("async_echo")
    async def async_echo(ctx: RpcContext):
        return ctx.data

    @registry.register()
    def picky(ctx: RpcContext):
        raise RpcInvalidParams("nope")

    @registry.register()
    def broken(ctx: RpcContext):
        raise RuntimeError("boom")

    return registry


class TestRegistry:
    def test_duplicate_names_are_rejected(self, methods):
        with pytest.raises(ValueError, match="already registered"):
            methods.add("echo", lambda ctx: None)

    def test_scoped(self, methods):
        scoped = RpcRegistry().add_scoped("demo", methods)
        assert scoped.names() == ["demo.async_echo", "demo.broken", "demo.echo", "demo.picky"]

    def test_root_has_feature_scopes(self):
        assert "session.ping" in root
        assert "session.set_viewing" in root
        assert "chat.post" in root


class TestHandleEnvelope:
    @pytest.mark.django_db
    def test_sync_handler(self, methods):
        reply = handle(
            methods,
            {"method": "echo", "data": [1, 2], "nonce": 7},
            user_id="u1",
            socket_id="s1",
        )
        assert reply == {
            "method": "echo",
            "data": {"data": [1, 2], "user": "u1", "socket": "s1"},
            "nonce": 7,
        }

    def test_async_handler_and_json_text(self, methods):
        raw = json.dumps({"method": "async_echo", "data": "hi", "nonce": 0})
        assert handle(methods, raw, user_id="u1") == {
            "method": "async_echo",
            "data": "hi",
            "nonce": 0,
        }

    def test_unknown_method(self, methods):
        reply = handle(methods, {"method": "nope", "nonce": 1}, user_id="u1")
        assert reply == {"method": "nope", "error": "Function nope not found", "nonce": 1}

    @pytest.mark.django_db
    def test_handler_error(self, methods):
        reply = handle(methods, {"method": "picky", "nonce": 2}, user_id="u1")
        assert reply == {"method": "picky", "error": "nope", "nonce": 2}

    def test_unexpected_error_is_hidden(self, methods):
        reply = handle(methods, {"method": "broken", "nonce": 3}, user_id="u1")
        assert reply == {"method": "broken", "error": "Internal server error", "nonce": 3}

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            ["echo"],
            {"data": 1, "nonce": 1},
            {"method": "echo"},
            {"method": "echo", "nonce": -1},
            {"method": "echo", "nonce": True},
        ],
    )
    def test_malformed_envelope(self, methods, raw):
        reply = handle(methods, raw, user_id="u1")
        assert list(reply) == ["error"]
        assert reply["error"].startswith("Malformed message")


@pytest.mark.django_db(transaction=True)
def test_chat_call_through_root(make_user):
    from halogin.chat.models import ChatRoom
    from halogin.companies.models import Company

    creator = make_user(email="creator@example.com")
    company = Company.objects.create(full_name="Engines", banner_desc="Engines.")
    room = ChatRoom.objects.create(company=company, user=creator)

    reply = handle(root, {"method": "chat.list", "data": None, "nonce": 5}, user_id=str(creator.pk))

    assert reply == {"method": "chat.list", "data": [str(room.pk)], "nonce": 5}
