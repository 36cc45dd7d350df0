import io

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient

User = get_user_model()

EMBEDDING_DIMENSIONS = 1536


class FakeEncoder:
    """Deterministic stand-in for the embedding API."""

    dimensions = EMBEDDING_DIMENSIONS

    def __init__(self):
        self.texts: list[str] = []

    def encode(self, text: str) -> list[float]:
        self.texts.append(text)
        vector = [0.0] * self.dimensions
        vector[len(self.texts) % self.dimensions] = 1.0
        return vector


@pytest.fixture(autouse=True)
def _media_storage(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")


@pytest.fixture(autouse=True)
def fake_encoder(monkeypatch):
    encoder = FakeEncoder()
    monkeypatch.setattr(
        "halogin.integrations.embeddings.client.get_encoder",
        lambda: encoder,
    )
    return encoder


@pytest.fixture(autouse=True)
def _empty_page_registry():
    from halogin.realtime.sessions import registry

    registry.clear()
    yield
    registry.clear()


@pytest.fixture
def sent_events(monkeypatch):
    """Events pushed to pages, as ``(socket_id, event, data)`` tuples."""
    events = []
    monkeypatch.setattr(
        "halogin.realtime.socketio.emit_to_page",
        lambda socket_id, event, data: events.append((socket_id, event, data)),
    )
    return events


@pytest.fixture
def queued_pushes(monkeypatch):
    """Pushes queued per session, as ``(session_id, PushMessage)`` tuples."""
    pushes = []
    monkeypatch.setattr(
        "halogin.realtime.events.notify.queue_session_push",
        lambda session_id, push: pushes.append((session_id, push)),
    )
    return pushes


@pytest.fixture
def make_user(db):
    def _make(email="someone@example.com", **extra):
        user = User(email=email, **extra)
        user.set_unusable_password()
        user.save()
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user(first_name="Ada", last_name="Lovelace")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def session_client(user):
    """Client authenticated through a real login session."""
    from halogin.users.sessions import open_session

    session = open_session(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {session.access}")
    client.session_id = session.session_id
    return client


def png_bytes(size=(800, 600), color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_upload():
    def _upload(name="picture.png", size=(800, 600)):
        return SimpleUploadedFile(name, png_bytes(size), content_type="image/png")

    return _upload
