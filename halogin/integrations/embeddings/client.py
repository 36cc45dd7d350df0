from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from django.conf import settings

from halogin.integrations.exceptions import UpstreamServiceError
from halogin.integrations.http import HttpError
from halogin.integrations.http import request_json

logger = logging.getLogger(__name__)

VOYAGE_EMBEDDINGS_URL = "https://api.voyageai.com/v1/embeddings"


class EmbeddingError(Exception):
    """Embedding generation failed."""


class EmbeddingNotConfiguredError(EmbeddingError):
    """Raised when the embedding backend is missing configuration."""


@dataclass
class EmbeddingConfig:
    model: str = "voyage-large-2"
    api_key: str | None = None
    dimensions: int = 1536
    timeout: float = 15.0


class EmbeddingEncoder:
    """Turns a text into a fixed-size vector."""

    dimensions: int

    def encode(self, text: str) -> list[float]:
        raise NotImplementedError


class VoyageEncoder(EmbeddingEncoder):
    """Voyage AI REST backend.

    The endpoint answers either with a ``list`` object wrapping embedding
    objects or with a bare ``embedding`` object.
    """

    def __init__(self, cfg: EmbeddingConfig):
        if not cfg.api_key:
            msg = "VOYAGE_API_KEY missing"
            raise EmbeddingNotConfiguredError(msg)
        self.cfg = cfg
        self.dimensions = cfg.dimensions

    def encode(self, text: str) -> list[float]:
        try:
            obj = request_json(
                VOYAGE_EMBEDDINGS_URL,
                method="POST",
                headers={"Authorization": f"Bearer {self.cfg.api_key}"},
                json_body={"input": [text], "model": self.cfg.model},
                timeout=self.cfg.timeout,
            )
        except HttpError as e:
            logger.warning("Voyage request failed: %s", e)
            raise EmbeddingError(str(e)) from e
        return self._vector(self._unwrap(obj))

    @staticmethod
    def _unwrap(obj: Any) -> Any:
        if not isinstance(obj, dict):
            msg = "Unexpected response from Voyage"
            raise EmbeddingError(msg)
        if obj.get("object") == "list":
            data = obj.get("data") or []
            if not data:
                msg = "No data in response from Voyage"
                raise EmbeddingError(msg)
            inner = data[-1]
            if not isinstance(inner, dict) or inner.get("object") == "list":
                msg = "Voyage returned data inside data instead of embedding"
                raise EmbeddingError(msg)
            return inner
        return obj

    def _vector(self, obj: dict[str, Any]) -> list[float]:
        embedding = obj.get("embedding")
        if not isinstance(embedding, list):
            msg = "Voyage response has no embedding"
            raise EmbeddingError(msg)
        if len(embedding) != self.dimensions:
            msg = f"Expected {self.dimensions} dimensions, got {len(embedding)}"
            raise EmbeddingError(msg)
        return [float(x) for x in embedding]


def get_encoder() -> EmbeddingEncoder:
    """Factory reading settings to return the configured encoder."""
    cfg = EmbeddingConfig(
        model=getattr(settings, "EMBEDDING_MODEL", "voyage-large-2"),
        api_key=getattr(settings, "VOYAGE_API_KEY", None),
        dimensions=getattr(settings, "EMBEDDING_DIMENSIONS", 1536),
        timeout=getattr(settings, "EMBEDDING_TIMEOUT", 15.0),
    )
    return VoyageEncoder(cfg)


def encode(text: str) -> list[float]:
    return get_encoder().encode(text)


def encode_or_fail(text: str) -> list[float]:
    """Encode for an API request; failures surface as a 502."""
    try:
        return encode(text)
    except EmbeddingError as exc:
        logger.warning("Embedding failed: %s", exc)
        msg = "Embedding service unavailable."
        raise UpstreamServiceError(msg) from exc
