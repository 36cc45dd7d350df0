from unittest import mock

import pytest

from halogin.integrations.embeddings import client
from halogin.integrations.embeddings.client import EmbeddingConfig
from halogin.integrations.embeddings.client import EmbeddingError
from halogin.integrations.embeddings.client import EmbeddingNotConfiguredError
from halogin.integrations.embeddings.client import VoyageEncoder
from halogin.integrations.exceptions import UpstreamServiceError
from halogin.integrations.http import HttpStatusError


@pytest.fixture
def encoder():
    return VoyageEncoder(EmbeddingConfig(api_key="test-key", dimensions=3))


class TestVoyageEncoder:
    def test_requires_api_key(self):
        with pytest.raises(EmbeddingNotConfiguredError):
            VoyageEncoder(EmbeddingConfig(api_key=""))

    def test_list_response(self, encoder, monkeypatch):
        request_json = mock.Mock(
            return_value={
                "object": "list",
                "data": [{"object": "embedding", "embedding": [1, 0.5, 0], "index": 0}],
            }
        )
        monkeypatch.setattr(client, "request_json", request_json)

        assert encoder.encode("hello") == [1.0, 0.5, 0.0]
        assert request_json.call_args.kwargs["json_body"] == {
            "input": ["hello"],
            "model": "voyage-large-2",
        }
        assert request_json.call_args.kwargs["headers"] == {"Authorization": "Bearer test-key"}

    def test_bare_embedding_response(self, encoder, monkeypatch):
        monkeypatch.setattr(
            client, "request_json", mock.Mock(return_value={"embedding": [0, 0, 1]})
        )
        assert encoder.encode("hello") == [0.0, 0.0, 1.0]

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"object": "list", "data": []},
            {"object": "list", "data": [{"object": "list", "data": []}]},
            {"embedding": "nope"},
            {"embedding": [1, 2]},
        ],
    )
    def test_bad_responses(self, encoder, monkeypatch, payload):
        monkeypatch.setattr(client, "request_json", mock.Mock(return_value=payload))
        with pytest.raises(EmbeddingError):
            encoder.encode("hello")

    def test_http_failure(self, encoder, monkeypatch):
        monkeypatch.setattr(
            client,
            "request_json",
            mock.Mock(side_effect=HttpStatusError(500, b"oops", {})),
        )
        with pytest.raises(EmbeddingError):
            encoder.encode("hello")


def test_encode_or_fail_maps_to_upstream_error(monkeypatch):
    monkeypatch.setattr(client, "encode", mock.Mock(side_effect=EmbeddingError("down")))
    with pytest.raises(UpstreamServiceError):
        client.encode_or_fail("hello")
