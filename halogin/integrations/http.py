"""Minimal JSON-over-HTTP helpers shared by the third-party integrations.

OAuth providers, the embedding API and Firebase all speak plain JSON over
HTTPS, so urllib is enough; callers translate these errors into their own.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from dataclasses import field
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class HttpError(Exception):
    """Transport failure or undecodable response."""


class ResponseTooLarge(HttpError):
    """The response body exceeded the caller's ``max_bytes``."""


class HttpStatusError(HttpError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int, body: bytes, headers: dict[str, str]):
        self.status = status
        self.body = body
        self.headers = headers
        super().__init__(f"HTTP {status}: {body[:200].decode('utf-8', 'ignore')}")

    def json(self) -> Any | None:
        try:
            return json.loads(self.body.decode("utf-8"))
        except ValueError:
            return None


@dataclass
class HttpResponse:
    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").split(";")[0].strip().lower()

    def json(self) -> Any:
        try:
            return json.loads(self.body.decode("utf-8"))
        except ValueError as exc:
            msg = "Response is not valid JSON"
            raise HttpError(msg) from exc


def _lower_headers(headers) -> dict[str, str]:
    return {k.lower(): v for k, v in headers.items()}


def send(
    url: str,
    *,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    json_body: Any = None,
    form: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int | None = None,
) -> HttpResponse:
    """Perform one HTTP request and return the raw response.

    Raises:
        HttpStatusError: for non-2xx answers.
        ResponseTooLarge: when the body is longer than ``max_bytes``.
        HttpError: for transport failures.
    """
    all_headers = dict(headers or {})
    data: bytes | None = None
    if json_body is not None:
        data = json.dumps(json_body).encode("utf-8")
        all_headers.setdefault("Content-Type", "application/json")
    elif form is not None:
        data = urllib.parse.urlencode(form).encode("utf-8")
        all_headers.setdefault("Content-Type", "application/x-www-form-urlencoded")
    all_headers.setdefault("Accept", "application/json")

    req = urllib.request.Request(  # noqa: S310 - external URL by config
        url,
        data=data,
        headers=all_headers,
        method=method,
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # noqa: S310 - external URL by config
            if max_bytes is None:
                body = resp.read()
            else:
                body = resp.read(max_bytes + 1)
                if len(body) > max_bytes:
                    msg = f"Response from {url} exceeds {max_bytes} bytes"
                    raise ResponseTooLarge(msg)
            return HttpResponse(
                status=resp.status,
                body=body,
                headers=_lower_headers(resp.headers),
            )
    except urllib.error.HTTPError as e:
        body = e.read()
        logger.debug("%s %s -> %s", method, url, e.code)
        raise HttpStatusError(e.code, body, _lower_headers(e.headers or {})) from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        logger.warning("%s %s failed: %s", method, url, e)
        raise HttpError(str(e)) from e


def request_json(url: str, **kwargs: Any) -> Any:
    """Like :func:`send` but decodes the JSON body."""
    return send(url, **kwargs).json()
