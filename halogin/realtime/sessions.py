"""Live pages of login sessions.

A login session (``sid`` claim) can have several pages open at once, one per
connected socket. Each page remembers whether the user is currently looking at
it, which decides between an in-app event and a push notification.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from halogin.realtime.rpc import RpcContext
from halogin.realtime.rpc import RpcInvalidParams
from halogin.realtime.rpc import RpcRegistry
from halogin.realtime.rpc import root

logger = logging.getLogger(__name__)


@dataclass
class Page:
    socket_id: str
    session_id: str
    user_id: Any
    currently_viewing: bool = True


class SessionRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._pages: dict[str, Page] = {}

    def add_page(self, session_id: str, user_id: Any, socket_id: str) -> Page:
        page = Page(socket_id=socket_id, session_id=session_id, user_id=str(user_id))
        with self._lock:
            self._pages[socket_id] = page
        logger.debug("Opened page %s for session %s", socket_id, session_id)
        return page

    def close_page(self, socket_id: str) -> Page | None:
        with self._lock:
            page = self._pages.pop(socket_id, None)
        if page is not None:
            logger.debug("Closed page %s of session %s", socket_id, page.session_id)
        return page

    def get_page(self, socket_id: str) -> Page | None:
        with self._lock:
            return self._pages.get(socket_id)

    def set_viewing(self, socket_id: str, viewing: bool) -> bool:
        with self._lock:
            page = self._pages.get(socket_id)
            if page is None:
                return False
            page.currently_viewing = bool(viewing)
            return True

    def pages_for_user(self, user_id: Any) -> list[Page]:
        user_id = str(user_id)
        with self._lock:
            return [page for page in self._pages.values() if page.user_id == user_id]

    def pages_for_session(self, session_id: str) -> list[Page]:
        with self._lock:
            return [p for p in self._pages.values() if p.session_id == session_id]

    def pages_by_session(self, user_id: Any) -> dict[str, list[Page]]:
        grouped: dict[str, list[Page]] = defaultdict(list)
        for page in self.pages_for_user(user_id):
            grouped[page.session_id].append(page)
        return dict(grouped)

    def clear(self) -> None:
        with self._lock:
            self._pages.clear()


registry = SessionRegistry()

session_methods = RpcRegistry()


@session_methods.register("set_viewing")
async def set_viewing(ctx: RpcContext) -> dict:
    data = ctx.data if isinstance(ctx.data, dict) else {}
    viewing = data.get("viewing")
    if not isinstance(viewing, bool):
        msg = "viewing must be a boolean"
        raise RpcInvalidParams(msg)
    registry.set_viewing(ctx.socket_id, viewing)
    return {"viewing": viewing}


@session_methods.register("ping")
async def ping(ctx: RpcContext) -> dict:
    return {"pong": True}


root.add_scoped("session", session_methods)
