import io

import pytest
from PIL import Image
from rest_framework.exceptions import ValidationError

from halogin.integrations.http import HttpResponse
from halogin.integrations.http import ResponseTooLarge
from halogin.storage import images
from halogin.storage.images import format_for_content_type
from halogin.storage.images import format_for_extension
from halogin.storage.images import image_name
from halogin.storage.images import load_image
from halogin.storage.images import store_public_image


def _png(size=(50, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (0, 120, 200)).save(buf, format="PNG")
    return buf.getvalue()


def test_image_name_is_sharded_by_first_character():
    assert image_name("logo", "ABC-123", "png") == "logo/a/abc-123.png"


def test_formats_are_resolved_by_pillow():
    assert format_for_extension("JPG") == "JPEG"
    assert format_for_extension("nope") is None
    assert format_for_content_type("image/png") == "PNG"
    assert format_for_content_type("text/html") is None


def test_load_image_rejects_garbage():
    with pytest.raises(ValidationError):
        load_image(b"definitely not a png", "PNG")


def test_store_without_image_returns_none():
    assert store_public_image("pfp", "abc", None, None) is None


def test_store_replaces_previous_file():
    first = store_public_image("pfp", "abc", None, load_image(_png((900, 300)), "PNG"))
    second = store_public_image("pfp", "abc", None, load_image(_png((10, 10)), "PNG"))

    assert first == second
    stored = images.default_storage.path("pfp/a/abc.png")
    with Image.open(stored) as image:
        assert image.size == (10, 10)


def test_remote_image_takes_precedence(monkeypatch):
    monkeypatch.setattr(
        images,
        "send",
        lambda url, **kwargs: HttpResponse(200, _png(), {"content-type": "image/png"}),
    )
    upload = load_image(_png(), "PNG")
    upload = images.LoadedImage(upload.image, "GIF")

    path = store_public_image("logo", "xyz", "https://cdn.example.com/logo", upload)

    assert path.endswith("logo/x/xyz.png")


def test_remote_image_requires_image_content_type(monkeypatch):
    monkeypatch.setattr(
        images,
        "send",
        lambda url, **kwargs: HttpResponse(200, b"<html>", {"content-type": "text/html"}),
    )
    with pytest.raises(ValidationError):
        store_public_image("logo", "xyz", "https://cdn.example.com/logo", None)


def test_load_image_rejects_decompression_bombs(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    with pytest.raises(ValidationError):
        load_image(_png(), "PNG")


def test_store_removes_picture_with_other_extension():
    store_public_image("pfp", "abc", None, load_image(_png(), "PNG"))
    jpeg = images.LoadedImage(load_image(_png(), "PNG").image, "JPEG")

    path = store_public_image("pfp", "abc", None, jpeg)

    assert path.endswith("pfp/a/abc.jpg")
    assert not images.default_storage.exists("pfp/a/abc.png")
    assert images.default_storage.exists("pfp/a/abc.jpg")


def test_store_keeps_other_owners_in_the_same_shard():
    store_public_image("pfp", "abd", None, load_image(_png(), "PNG"))
    store_public_image("pfp", "abc", None, load_image(_png(), "PNG"))

    assert images.default_storage.exists("pfp/a/abd.png")


@pytest.mark.parametrize(
    "url",
    ["file:///etc/hosts", "ftp://cdn.example.com/logo.png", "/var/media/logo.png"],
)
def test_remote_image_requires_http_scheme(monkeypatch, url):
    def fail(*args, **kwargs):
        pytest.fail("send should not be called")

    monkeypatch.setattr(images, "send", fail)
    with pytest.raises(ValidationError):
        store_public_image("logo", "xyz", url, None)


def test_remote_image_read_is_bounded(monkeypatch):
    seen = {}

    def fake_send(url, **kwargs):
        seen.update(kwargs)
        raise ResponseTooLarge("too big")

    monkeypatch.setattr(images, "send", fake_send)
    with pytest.raises(ValidationError, match="too large"):
        store_public_image("logo", "xyz", "https://cdn.example.com/logo", None)
    assert seen["max_bytes"] == images.MAX_IMAGE_BYTES
