# client.py
"""WitriumClient: composition root and public entry point.

Wires the aiohttp transport into RunManager and BrowserSessionManager and
owns the client's active-session slot.

Active session
--------------
`browser_session()` creates a remote browser session, makes it the client's
active session for the duration of the block and always closes it on exit.
Workflow and talent runs submitted inside the block are attached to it unless
their options name a `browser_session_id` explicitly. Blocks may be nested
within one task; the outer session becomes active again when the inner block
exits.

The slot belongs to the client instance, not to the call stack. Concurrent
session blocks on one instance are rejected with SessionContextError; use
one client per concurrent flow, or pass session ids explicitly through
`client.runs`.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from witrium.adapters.aiohttp_client_adapter import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    AioHttpClientAdapter,
)
from witrium.core.config import ClientConfig
from witrium.core.exceptions import SessionContextError
from witrium.core.interfaces.http_client import HttpClientPort
from witrium.core.interfaces.observers import RunObserver
from witrium.core.managers.run_manager import RunManager
from witrium.core.managers.session_manager import BrowserSessionManager
from witrium.core.models.options import (
    BrowserSessionCreateOptions,
    RunWorkflowAndWaitOptions,
    TalentRunOptions,
    WaitUntilStateOptions,
    WorkflowRunOptions,
)
from witrium.core.models.run import (
    TalentRunResult,
    WorkflowRun,
    WorkflowRunResult,
    WorkflowRunSubmitted,
)
from witrium.core.models.session import (
    BrowserSession,
    CloseBrowserSession,
    ListBrowserSession,
)
from witrium.core.models.status import StatusCode
from witrium.core.settings import WitriumSettings, app_settings, logger

O = TypeVar("O", bound=BaseModel)
T = TypeVar("T")


class WitriumClient:
    def __init__(
        self,
        api_token: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        config: Optional[ClientConfig] = None,
        http_client: Optional[HttpClientPort] = None,
        observers: Optional[list[RunObserver]] = None,
    ) -> None:
        self.config = config or ClientConfig(request_timeout=timeout)
        if http_client is None:
            if not api_token:
                raise ValueError("api_token is required when no http_client is given")
            http_client = AioHttpClientAdapter(
                api_token, base_url=base_url, timeout=self.config.request_timeout
            )
        self._http = http_client
        self.runs = RunManager(http_client, config=self.config, observers=observers)
        self.sessions = BrowserSessionManager(http_client)

        self._session_id: Optional[str] = None
        self._session_owner: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[WitriumSettings] = None,
        observers: Optional[list[RunObserver]] = None,
    ) -> "WitriumClient":
        """Build a client from WITRIUM_* environment settings."""
        settings = settings or app_settings
        token = settings.WITRIUM_API_TOKEN
        return cls(
            api_token=token.get_secret_value() if token else None,
            base_url=settings.WITRIUM_BASE_URL,
            config=ClientConfig.from_settings(settings),
            observers=observers,
        )

    async def __aenter__(self) -> "WitriumClient":
        await self._http.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def close(self) -> None:
        await self._http.close()

    @property
    def session_id(self) -> Optional[str]:
        """Id of the active browser session, if a session block is open."""
        return self._session_id

    # ---------------- Runs -----------------
    async def run_workflow(
        self, workflow_id: str, options: Optional[WorkflowRunOptions] = None, **kwargs
    ) -> WorkflowRunSubmitted:
        options = _coerce_options(WorkflowRunOptions, options, kwargs)
        return await self.runs.run_workflow(
            workflow_id, options, session_id=self._session_id
        )

    async def run_talent(
        self, talent_id: str, options: Optional[TalentRunOptions] = None, **kwargs
    ) -> TalentRunResult:
        options = _coerce_options(TalentRunOptions, options, kwargs)
        return await self.runs.run_talent(talent_id, options, session_id=self._session_id)

    async def get_workflow_results(self, run_id: str) -> WorkflowRunResult:
        return await self.runs.get_workflow_results(run_id)

    async def cancel_run(self, run_id: str) -> WorkflowRun:
        return await self.runs.cancel_run(run_id)

    async def wait_until_state(
        self,
        run_id: str,
        target_status: Union[StatusCode, str],
        options: Optional[WaitUntilStateOptions] = None,
        **kwargs,
    ) -> WorkflowRunResult:
        options = _coerce_options(WaitUntilStateOptions, options, kwargs)
        return await self.runs.wait_until_state(run_id, target_status, options)

    async def run_workflow_and_wait(
        self,
        workflow_id: str,
        options: Optional[RunWorkflowAndWaitOptions] = None,
        **kwargs,
    ) -> Union[WorkflowRunResult, List[WorkflowRunResult]]:
        options = _coerce_options(RunWorkflowAndWaitOptions, options, kwargs)
        return await self.runs.run_workflow_and_wait(
            workflow_id, options, session_id=self._session_id
        )

    # ---------------- Browser sessions -----------------
    async def create_browser_session(
        self, options: Optional[BrowserSessionCreateOptions] = None, **kwargs
    ) -> BrowserSession:
        options = _coerce_options(BrowserSessionCreateOptions, options, kwargs)
        return await self.sessions.create_browser_session(options)

    async def list_browser_sessions(self) -> ListBrowserSession:
        return await self.sessions.list_browser_sessions()

    async def get_browser_session(self, session_uuid: str) -> BrowserSession:
        return await self.sessions.get_browser_session(session_uuid)

    async def close_browser_session(
        self, session_uuid: str, force: bool = False
    ) -> CloseBrowserSession:
        return await self.sessions.close_browser_session(session_uuid, force=force)

    @asynccontextmanager
    async def browser_session(
        self, options: Optional[BrowserSessionCreateOptions] = None, **kwargs
    ) -> AsyncIterator[str]:
        """Create a browser session and make it active for the enclosed block.

        The session is force-closed and the previously active session restored
        on exit, whether the block succeeds or raises. A failure to close is
        logged and never replaces the block's own outcome.
        """
        options = _coerce_options(BrowserSessionCreateOptions, options, kwargs)
        current_task = asyncio.current_task()
        owner = self._session_owner
        if owner is not None and owner is not current_task and not owner.done():
            raise SessionContextError(
                "Another task holds this client's active browser session; "
                "use a separate WitriumClient per concurrent flow or pass "
                "browser_session_id explicitly"
            )

        # Claim the slot before the first await so a second task sees it taken
        previous_id, previous_owner = self._session_id, self._session_owner
        self._session_owner = current_task
        try:
            session = await self.sessions.create_browser_session(options)
        except BaseException:
            self._session_owner = previous_owner
            raise
        self._session_id = session.uuid
        logger.debug(
            "[session:enter] session_id=%s previous=%s", session.uuid, previous_id
        )
        try:
            yield session.uuid
        finally:
            try:
                await self.sessions.close_browser_session(session.uuid, force=True)
            except Exception as exc:
                logger.warning(
                    "[session:exit] failed to close session_id=%s error=%s",
                    session.uuid,
                    exc,
                )
            finally:
                self._session_id, self._session_owner = previous_id, previous_owner
                logger.debug(
                    "[session:exit] session_id=%s restored=%s", session.uuid, previous_id
                )

    async def with_browser_session(
        self,
        callback: Callable[[str], Awaitable[T]],
        options: Optional[BrowserSessionCreateOptions] = None,
        **kwargs,
    ) -> T:
        """Run `callback(session_id)` inside `browser_session` and return its result."""
        async with self.browser_session(options, **kwargs) as session_id:
            return await callback(session_id)


def _coerce_options(cls: Type[O], options: Optional[O], kwargs: dict[str, Any]) -> O:
    if options is not None and kwargs:
        raise TypeError("pass either an options object or keyword options, not both")
    if options is None:
        return cls(**kwargs)
    return options
