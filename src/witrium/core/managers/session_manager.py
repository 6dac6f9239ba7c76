"""BrowserSessionManager: remote primitives for browser sessions.

Only the create/list/get/close calls live here. Scoping a session to a block
of work and injecting it into runs is done by WitriumClient.
"""

from typing import Any, Awaitable, Optional

from witrium.core.exceptions import RemoteRequestError
from witrium.core.interfaces.http_client import HttpClientPort
from witrium.core.models.options import BrowserSessionCreateOptions
from witrium.core.models.session import (
    BrowserSession,
    CloseBrowserSession,
    ListBrowserSession,
)
from witrium.core.settings import logger
from witrium.core.utils.wire import from_wire, to_wire


class BrowserSessionManager:
    def __init__(self, http_client: HttpClientPort) -> None:
        self._http = http_client

    async def create_browser_session(
        self, options: Optional[BrowserSessionCreateOptions] = None
    ) -> BrowserSession:
        options = options or BrowserSessionCreateOptions()
        body = await self._call(
            "creating browser session",
            self._http.post("/v1/browser-sessions", json=to_wire(options)),
        )
        session = from_wire(BrowserSession, body)
        logger.info(
            "[session:create] session_id=%s provider=%s", session.uuid, session.provider
        )
        return session

    async def list_browser_sessions(self) -> ListBrowserSession:
        body = await self._call(
            "listing browser sessions", self._http.get("/v1/browser-sessions")
        )
        return from_wire(ListBrowserSession, body)

    async def get_browser_session(self, session_uuid: str) -> BrowserSession:
        _require_uuid(session_uuid)
        body = await self._call(
            "getting browser session",
            self._http.get(f"/v1/browser-sessions/{session_uuid}"),
        )
        return from_wire(BrowserSession, body)

    async def close_browser_session(
        self, session_uuid: str, force: bool = False
    ) -> CloseBrowserSession:
        """Close a session; `force` closes it even while a run is using it."""
        _require_uuid(session_uuid)
        body = await self._call(
            "closing browser session",
            self._http.delete(
                f"/v1/browser-sessions/{session_uuid}",
                params={"force": "true" if force else "false"},
            ),
        )
        logger.info("[session:close] session_id=%s force=%s", session_uuid, force)
        return from_wire(CloseBrowserSession, body)

    async def _call(self, action: str, request: Awaitable[Any]) -> Any:
        try:
            return await request
        except RemoteRequestError as exc:
            raise exc.for_action(action) from exc


def _require_uuid(session_uuid: str) -> None:
    if not isinstance(session_uuid, str) or not session_uuid.strip():
        raise ValueError("session_uuid must be a non-empty string")
