"""Method registry and envelope dispatch for the ``rpc`` Socket.IO event.

Clients send ``{method, data, nonce}``; the reply carries the same method and
nonce with either ``data`` or ``error``. An envelope that cannot be read at
all is answered with a bare ``{error}``.
"""

from __future__ import annotations

import dataclasses
import inspect
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from channels.db import database_sync_to_async

logger = logging.getLogger(__name__)


class RpcError(Exception):
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class RpcMethodNotFound(RpcError):
    code = "method_not_found"
    default_message = "Function not found"


class RpcInvalidParams(RpcError):
    code = "invalid_params"
    default_message = "Invalid parameters"


class RpcPermissionDenied(RpcError):
    code = "permission_denied"
    default_message = "You do not have permission to perform this action"


class RpcNotFound(RpcError):
    code = "not_found"
    default_message = "Not found"


@dataclass(frozen=True)
class RpcContext:
    user_id: Any
    session_id: str | None = None
    socket_id: str | None = None
    data: Any = None


Handler = Callable[[RpcContext], Any]


class RpcRegistry:
    def __init__(self):
        self._methods: dict[str, Handler] = {}

    def add(self, name: str, handler: Handler) -> None:
        if name in self._methods:
            msg = f"RPC method {name!r} is already registered"
            raise ValueError(msg)
        self._methods[name] = handler

    def register(self, name: str | None = None):
        """Decorator registering a handler under ``name`` (default: its name)."""

        def decorator(func: Handler) -> Handler:
            self.add(name or func.__name__, func)
            return func

        return decorator

    def add_scoped(self, scope: str, other: RpcRegistry) -> RpcRegistry:
        for name, handler in other._methods.items():
            self.add(f"{scope}.{name}", handler)
        return self

    def names(self) -> list[str]:
        return sorted(self._methods)

    def __contains__(self, name: str) -> bool:
        return name in self._methods

    async def call(self, name: str, data: Any, context: RpcContext) -> Any:
        handler = self._methods.get(name)
        if handler is None:
            msg = f"Function {name} not found"
            raise RpcMethodNotFound(msg)
        context = dataclasses.replace(context, data=data)
        if inspect.iscoroutinefunction(handler):
            return await handler(context)
        return await database_sync_to_async(handler)(context)


# Every feature adds its scope here (see ``AppConfig.ready``).
root = RpcRegistry()


def _parse_envelope(raw: Any) -> tuple[str, Any, int]:
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            msg = f"Malformed message: {exc}"
            raise RpcInvalidParams(msg) from exc
    if not isinstance(raw, dict):
        msg = "Malformed message: expected an object"
        raise RpcInvalidParams(msg)
    method = raw.get("method")
    nonce = raw.get("nonce")
    if not isinstance(method, str) or not method:
        msg = "Malformed message: missing method"
        raise RpcInvalidParams(msg)
    if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0:
        msg = "Malformed message: nonce must be a non-negative integer"
        raise RpcInvalidParams(msg)
    return method, raw.get("data"), nonce


async def handle_envelope(
    registry: RpcRegistry,
    raw: Any,
    *,
    user_id: Any,
    session_id: str | None = None,
    socket_id: str | None = None,
) -> dict[str, Any]:
    """Run one client call and build the reply envelope."""
    try:
        method, data, nonce = _parse_envelope(raw)
    except RpcError as exc:
        return {"error": str(exc)}

    context = RpcContext(user_id=user_id, session_id=session_id, socket_id=socket_id)
    try:
        result = await registry.call(method, data, context)
    except RpcError as exc:
        return {"method": method, "error": str(exc), "nonce": nonce}
    except Exception:
        logger.exception("RPC method %s failed", method)
        return {"method": method, "error": "Internal server error", "nonce": nonce}
    return {"method": method, "data": result, "nonce": nonce}
