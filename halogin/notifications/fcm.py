"""Firebase Cloud Messaging HTTP v1 client.

Authentication follows Google's service-account flow: a short-lived RS256
assertion signed with the account's private key is exchanged for an OAuth
access token, which is cached until shortly before it expires.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from datetime import datetime
from datetime import timezone as dt_timezone
from email.utils import parsedate_to_datetime
from functools import lru_cache
from pathlib import Path
from typing import Any

import jwt
from django.conf import settings

from halogin.integrations.http import HttpError
from halogin.integrations.http import HttpStatusError
from halogin.integrations.http import request_json

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"
FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

ASSERTION_LIFETIME = 3600
# Renew the cached access token this many seconds before it expires.
TOKEN_EXPIRY_MARGIN = 60

INVALID_TOKEN_CODES = {"UNREGISTERED", "INVALID_ARGUMENT"}


class FcmError(Exception):
    """Delivery failed and should not be retried."""


class FcmNotConfiguredError(FcmError):
    pass


class FcmInvalidToken(FcmError):
    """The registration token is unknown or no longer valid."""


class FcmRetryable(FcmError):
    """Server-side failure; ``retry_after`` is the delay in seconds, if given."""

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Parse a Retry-After header (delay seconds or an HTTP date).

    The result is never negative.
    """
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=dt_timezone.utc)
    now = now or datetime.now(tz=dt_timezone.utc)
    return max(0.0, (when - now).total_seconds())


def _error_codes(payload: Any) -> set[str]:
    if not isinstance(payload, dict):
        return set()
    error = payload.get("error") or {}
    codes = {str(error.get("status", ""))}
    for detail in error.get("details") or []:
        if isinstance(detail, dict) and detail.get("errorCode"):
            codes.add(str(detail["errorCode"]))
    codes.discard("")
    return codes


class FcmClient:
    def __init__(self, project_id: str, service_account: dict[str, Any], timeout: float = 10.0):
        self.project_id = project_id
        self.service_account = service_account
        self.timeout = timeout
        self._lock = threading.Lock()
        self._access_token: str | None = None
        self._expires_at = 0.0

    @classmethod
    def from_settings(cls) -> FcmClient:
        project_id = getattr(settings, "FCM_PROJECT_ID", "")
        account_file = getattr(settings, "FCM_SERVICE_ACCOUNT_FILE", "")
        if not project_id or not account_file:
            msg = "FCM_PROJECT_ID and FCM_SERVICE_ACCOUNT_FILE must be set."
            raise FcmNotConfiguredError(msg)
        try:
            service_account = json.loads(Path(account_file).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            msg = f"Could not read the FCM service account file {account_file}."
            raise FcmNotConfiguredError(msg) from exc
        return cls(project_id, service_account, getattr(settings, "FCM_TIMEOUT", 10.0))

    def _assertion(self, now: int) -> str:
        account = self.service_account
        claims = {
            "iss": account["client_email"],
            "scope": FCM_SCOPE,
            "aud": account.get("token_uri", GOOGLE_TOKEN_URL),
            "iat": now,
            "exp": now + ASSERTION_LIFETIME,
        }
        headers = {"kid": account["private_key_id"]} if account.get("private_key_id") else None
        return jwt.encode(claims, account["private_key"], algorithm="RS256", headers=headers)

    def access_token(self) -> str:
        with self._lock:
            now = time.time()
            if self._access_token and now < self._expires_at - TOKEN_EXPIRY_MARGIN:
                return self._access_token
            try:
                payload = request_json(
                    self.service_account.get("token_uri", GOOGLE_TOKEN_URL),
                    method="POST",
                    form={"grant_type": JWT_BEARER_GRANT, "assertion": self._assertion(int(now))},
                    timeout=self.timeout,
                )
            except HttpError as exc:
                msg = "Could not obtain an FCM access token."
                raise FcmError(msg) from exc
            if not isinstance(payload, dict) or not payload.get("access_token"):
                msg = "Google token endpoint returned no access token."
                raise FcmError(msg)
            self._access_token = payload["access_token"]
            self._expires_at = now + float(payload.get("expires_in", 3600))
            return self._access_token

    def _forget_access_token(self) -> None:
        with self._lock:
            self._access_token = None
            self._expires_at = 0.0

    def send(self, message: dict[str, Any]) -> str:
        """Send one message; returns the FCM message name."""
        url = FCM_SEND_URL.format(project_id=self.project_id)
        try:
            payload = request_json(
                url,
                method="POST",
                headers={"Authorization": f"Bearer {self.access_token()}"},
                json_body={"message": message},
                timeout=self.timeout,
            )
        except HttpStatusError as exc:
            raise self._classify(exc) from exc
        except HttpError as exc:
            msg = "FCM request failed."
            raise FcmRetryable(msg) from exc
        return payload.get("name", "") if isinstance(payload, dict) else ""

    def _classify(self, exc: HttpStatusError) -> FcmError:
        codes = _error_codes(exc.json())
        if exc.status == 404 or codes & INVALID_TOKEN_CODES:  # noqa: PLR2004
            return FcmInvalidToken(str(exc))
        if exc.status in (401, 403):  # noqa: PLR2004
            self._forget_access_token()
            return FcmError(str(exc))
        if exc.status == 429 or exc.status >= 500:  # noqa: PLR2004
            return FcmRetryable(str(exc), parse_retry_after(exc.headers.get("retry-after")))
        return FcmError(str(exc))


@lru_cache(maxsize=1)
def get_client() -> FcmClient:
    return FcmClient.from_settings()
