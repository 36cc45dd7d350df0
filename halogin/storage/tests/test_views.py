import io

import pytest
from PIL import Image
from rest_framework import status

from halogin.storage.images import load_image
from halogin.storage.images import store_public_image


def _stored_png(folder="pfp", owner="abc"):
    buf = io.BytesIO()
    Image.new("RGB", (20, 20), (10, 20, 30)).save(buf, format="PNG")
    return store_public_image(folder, owner, None, load_image(buf.getvalue(), "PNG"))


def _body(response) -> bytes:
    try:
        return b"".join(response.streaming_content)
    finally:
        response.close()


@pytest.mark.django_db
class TestPublicImage:
    def test_stored_path_is_served(self, client):
        path = _stored_png()

        res = client.get(path)

        assert path == "/api/v1/storage/static/pfp/a/abc.png"
        assert res.status_code == status.HTTP_200_OK
        assert res["Content-Type"] == "image/png"
        with Image.open(io.BytesIO(_body(res))) as image:
            assert image.size == (20, 20)

    def test_shard_is_derived_when_missing(self, client):
        _stored_png(folder="logo", owner="XYZ")

        res = client.get("/api/v1/storage/static/logo/xyz.png")

        assert res.status_code == status.HTTP_200_OK
        assert res["Content-Type"] == "image/png"
        _body(res)

    def test_missing_file_is_not_found(self, client):
        res = client.get("/api/v1/storage/static/pfp/nobody.png")
        assert res.status_code == status.HTTP_404_NOT_FOUND

    def test_wrong_shard_is_not_found(self, client):
        _stored_png()
        res = client.get("/api/v1/storage/static/pfp/b/abc.png")
        assert res.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.parametrize(
        "url",
        [
            "/api/v1/storage/static/secrets/a/abc.png",
            "/api/v1/storage/static/pfp/a/../abc.png",
            "/api/v1/storage/static/pfp/abc",
        ],
    )
    def test_only_picture_names_are_routed(self, client, url):
        _stored_png()
        res = client.get(url)
        assert res.status_code == status.HTTP_404_NOT_FOUND

    def test_only_get_is_allowed(self, client):
        path = _stored_png()
        res = client.post(path)
        assert res.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
