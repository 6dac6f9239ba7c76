"""RunManager: submits workflow/talent runs and polls them to a target state.

Responsibilities:
1. Submit workflow and talent runs (with the session id resolved by the caller).
2. Fetch result snapshots and cancel runs.
3. Wait until a run reaches a target status (`wait_until_state`).
4. Run a workflow to any terminal status (`run_workflow_and_wait`).

The manager depends only on HttpClientPort, so the polling engine can be
driven by a fake transport in tests. Session ids are ordinary arguments here;
the implicit "active session" lives one level up in WitriumClient.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, List, Optional, Union

from witrium.core.config import ClientConfig
from witrium.core.exceptions import (
    PollingTimeoutError,
    RemoteRequestError,
    TerminalMismatchError,
)
from witrium.core.interfaces.http_client import HttpClientPort
from witrium.core.interfaces.observers import RunObserver
from witrium.core.logging_config import run_id_var
from witrium.core.models.options import (
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
from witrium.core.models.status import StatusCode, is_terminal, status_name
from witrium.core.settings import logger
from witrium.core.utils.wire import from_wire, to_wire

WORKFLOW_RUN_FIELDS = frozenset(WorkflowRunOptions.model_fields)
TALENT_RUN_FIELDS = frozenset(TalentRunOptions.model_fields)


class RunManager:
    """Submission primitives and the polling state machine built on them."""

    def __init__(
        self,
        http_client: HttpClientPort,
        config: Optional[ClientConfig] = None,
        observers: Optional[list[RunObserver]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._http = http_client
        self.config = config or ClientConfig()
        self._observers = observers or []
        self._clock = clock
        self._sleep = sleep

    # ----------------- Observers -----------------
    async def _notify(self, event: str, payload: Any) -> None:
        for observer in self._observers:
            try:
                await getattr(observer, event)(payload)
            except Exception as exc:
                logger.error(
                    "[observer:error] %s failed observer=%s error=%s",
                    event,
                    type(observer).__name__,
                    exc,
                )

    # ----------------- Primitives -----------------
    async def run_workflow(
        self,
        workflow_id: str,
        options: Optional[WorkflowRunOptions] = None,
        session_id: Optional[str] = None,
    ) -> WorkflowRunSubmitted:
        """Submit a workflow run.

        `session_id` is used only when `options` does not set
        `browser_session_id` itself.
        """
        _require_id("workflow_id", workflow_id)
        options = options or WorkflowRunOptions()
        payload = self._build_payload(options, WORKFLOW_RUN_FIELDS, session_id)
        logger.debug(
            "[run:submit] workflow_id=%s payload_keys=%s", workflow_id, sorted(payload)
        )
        body = await self._call(
            "running workflow",
            self._http.post(f"/v1/workflows/{workflow_id}/run", json=payload),
        )
        submitted = from_wire(WorkflowRunSubmitted, body)
        logger.info(
            "[run:submit] workflow_id=%s run_id=%s status=%s",
            workflow_id,
            submitted.run_id,
            submitted.status,
        )
        await self._notify("on_run_submitted", submitted)
        return submitted

    async def run_talent(
        self,
        talent_id: str,
        options: Optional[TalentRunOptions] = None,
        session_id: Optional[str] = None,
    ) -> TalentRunResult:
        """Run a talent; the service answers once the talent has finished."""
        _require_id("talent_id", talent_id)
        options = options or TalentRunOptions()
        payload = self._build_payload(options, TALENT_RUN_FIELDS, session_id)
        logger.debug(
            "[talent:submit] talent_id=%s payload_keys=%s", talent_id, sorted(payload)
        )
        body = await self._call(
            "running talent",
            self._http.post(f"/v1/talents/{talent_id}/run", json=payload),
        )
        return from_wire(TalentRunResult, body)

    async def get_workflow_results(self, run_id: str) -> WorkflowRunResult:
        _require_id("run_id", run_id)
        body = await self._call(
            "getting workflow results", self._http.get(f"/v1/runs/{run_id}/results")
        )
        return from_wire(WorkflowRunResult, body)

    async def cancel_run(self, run_id: str) -> WorkflowRun:
        """Ask the service to cancel a run.

        Advisory only: a loop still polling the run sees the cancelled status
        on its next fetch and ends through the terminal path.
        """
        _require_id("run_id", run_id)
        body = await self._call(
            "cancelling workflow run", self._http.post(f"/v1/runs/{run_id}/cancel")
        )
        logger.info("[run:cancel] run_id=%s", run_id)
        return from_wire(WorkflowRun, body)

    def _build_payload(
        self,
        options: Union[WorkflowRunOptions, TalentRunOptions],
        fields: frozenset,
        session_id: Optional[str],
    ) -> dict[str, Any]:
        payload = to_wire(options, fields)
        if options.has("browser_session_id"):
            effective_session = options.browser_session_id
        else:
            effective_session = session_id
        if effective_session is not None:
            payload["browser_session_id"] = effective_session
            # Restoration is decided once, when the session was created
            if payload.pop("use_states", None) is not None:
                logger.debug(
                    "[run:submit] ignoring use_states in favour of session=%s",
                    effective_session,
                )
        return payload

    async def _call(self, action: str, request: Awaitable[Any]) -> Any:
        try:
            return await request
        except RemoteRequestError as exc:
            raise exc.for_action(action) from exc

    # ----------------- Polling -----------------
    async def wait_until_state(
        self,
        run_id: str,
        target_status: Union[StatusCode, str],
        options: Optional[WaitUntilStateOptions] = None,
    ) -> WorkflowRunResult:
        """Poll a run until it reaches `target_status`.

        Raises TerminalMismatchError as soon as the run is in a terminal status
        other than the target, and PollingTimeoutError when the condition is
        not met within the timeout.
        """
        _require_id("run_id", run_id)
        options = options or WaitUntilStateOptions()
        polling_interval = options.polling_interval or self.config.wait_polling_interval
        timeout = options.timeout or self.config.wait_timeout

        token = run_id_var.set(run_id)
        try:
            if options.min_wait_time > 0:
                logger.debug(
                    "[run:wait] min wait %.1fs before first fetch", options.min_wait_time
                )
                await self._sleep(options.min_wait_time)

            start = self._clock()
            fetches = 0
            while self._clock() - start < timeout:
                results = await self.get_workflow_results(run_id)
                fetches += 1
                await self._notify("on_snapshot", results)

                status_reached = results.status == target_status
                executions_done = (
                    not options.all_instructions_executed
                    or results.all_executions_completed()
                )
                if status_reached and executions_done:
                    logger.debug(
                        "[run:wait] reached status=%s after fetches=%d",
                        status_name(target_status),
                        fetches,
                    )
                    return results

                if is_terminal(results.status) and results.status != target_status:
                    logger.debug(
                        "[run:wait] terminal mismatch status=%s target=%s",
                        status_name(results.status),
                        status_name(target_status),
                    )
                    await self._notify("on_run_finished", results)
                    raise TerminalMismatchError(run_id, results.status, target_status)

                await self._sleep(polling_interval)

            condition = f"status '{status_name(target_status)}'"
            if options.all_instructions_executed:
                condition += " and all instructions executed"
            logger.warning(
                "[run:wait] timeout after %.1fs waiting for %s", timeout, condition
            )
            raise PollingTimeoutError(
                f"Workflow run did not reach {condition} within {timeout:g} seconds",
                run_id=run_id,
                timeout_seconds=timeout,
            )
        finally:
            run_id_var.reset(token)

    async def run_workflow_and_wait(
        self,
        workflow_id: str,
        options: Optional[RunWorkflowAndWaitOptions] = None,
        session_id: Optional[str] = None,
    ) -> Union[WorkflowRunResult, List[WorkflowRunResult]]:
        """Submit a workflow and poll it until any terminal status.

        Completed, failed and cancelled runs all end the loop normally; the
        outcome is read from the returned snapshot's status. With
        `return_intermediate_results` every fetched snapshot is returned in
        order, the terminal one last.
        """
        options = options or RunWorkflowAndWaitOptions()
        polling_interval = options.polling_interval or self.config.polling_interval
        timeout = options.timeout or self.config.polling_timeout

        submitted = await self.run_workflow(
            workflow_id, options.run_options(), session_id=session_id
        )
        run_id = submitted.run_id

        token = run_id_var.set(run_id)
        try:
            start = self._clock()
            intermediate_results: List[WorkflowRunResult] = []

            while self._clock() - start < timeout:
                results = await self.get_workflow_results(run_id)
                await self._notify("on_snapshot", results)

                if options.return_intermediate_results:
                    intermediate_results.append(results)

                if options.on_progress is not None:
                    outcome = options.on_progress(results)
                    if inspect.isawaitable(outcome):
                        await outcome

                if results.is_terminal():
                    logger.info(
                        "[run:poll] finished status=%s", status_name(results.status)
                    )
                    await self._notify("on_run_finished", results)
                    if options.return_intermediate_results:
                        return intermediate_results
                    return results

                logger.debug(
                    "[run:poll] status=%s sleeping %.1fs",
                    status_name(results.status),
                    polling_interval,
                )
                await self._sleep(polling_interval)

            logger.warning("[run:poll] timeout after %.1fs", timeout)
            raise PollingTimeoutError(
                f"Workflow execution timed out after {timeout:g} seconds",
                run_id=run_id,
                timeout_seconds=timeout,
            )
        finally:
            run_id_var.reset(token)


def _require_id(name: str, value: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
