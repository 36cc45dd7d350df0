"""Custom OpenAPI schema hooks for drf-spectacular.

Operations are grouped under one tag per resource so the Swagger UI reads
as Accounts / Creators / Companies / Notifications instead of one generic
``api`` section.
"""

from __future__ import annotations

from typing import Any

_HTTP_METHODS = {"get", "post", "put", "patch", "delete", "options", "head"}


PATTERN_TAGS = [
    ("/api/v1/auth/", "Authentication"),
    ("/api/v1/google/", "Google"),
    ("/api/v1/twitch/", "Twitch"),
    ("/api/v1/accounts", "Accounts"),
    ("/api/v1/users", "Users"),
    ("/api/v1/creator", "Creators"),
    ("/api/v1/company/invite", "Invitations"),
    ("/api/v1/company", "Companies"),
    ("/api/v1/notifications", "Notifications"),
]

ALL_TAGS = list(dict.fromkeys(t for _, t in PATTERN_TAGS))


def assign_group_tag(path: str) -> str | None:
    """Return the first matching tag name for a given path."""
    for prefix, tag in PATTERN_TAGS:
        if path.startswith(prefix):
            return tag
    return None


def group_tags(result: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
    """Post-processing hook to force consistent tag grouping.

    Every operation gets exactly one logical group. Invitation endpoints that
    sit under a company id (``/company/<id>/invite``) are grouped with the
    invitation inbox.
    """
    paths = result.get("paths", {})
    for path, path_item in paths.items():
        tag = "Invitations" if path.endswith(("/invite", "/accept", "/reject")) else None
        tag = tag or assign_group_tag(path)
        if not tag:
            continue
        for method, op_obj in path_item.items():
            if method.lower() not in _HTTP_METHODS:
                continue
            if not isinstance(op_obj, dict):
                continue
            op_obj["tags"] = [tag]

    existing = {t.get("name") for t in result.get("tags", [])}
    tag_list = result.setdefault("tags", [])
    for tag in ALL_TAGS:
        if tag not in existing:
            tag_list.append({"name": tag})
    return result
