"""Per-call option models.

Each operation takes an explicit options struct instead of a loose keyword bag.
Unknown fields are rejected so that typos surface immediately. Polling fields
left as ``None`` fall back to the client's ``ClientConfig`` defaults.

Whether a field was supplied at all is read from ``model_fields_set``: this is
what lets an explicit ``browser_session_id`` win over the active session even
when its value is ``None``.
"""

from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from witrium.core.models.run import FileUpload, WorkflowRunResult

ArgValue = Union[str, int, float]


class _Options(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def has(self, field_name: str) -> bool:
        """True when the caller supplied ``field_name`` explicitly."""
        return field_name in self.model_fields_set


class TalentRunOptions(_Options):
    args: Optional[Dict[str, ArgValue]] = None
    files: Optional[List[FileUpload]] = None
    use_states: Optional[List[str]] = None
    preserve_state: Optional[str] = None
    browser_session_id: Optional[str] = None


class WorkflowRunOptions(_Options):
    args: Optional[Dict[str, ArgValue]] = None
    files: Optional[List[FileUpload]] = None
    use_states: Optional[List[str]] = None
    preserve_state: Optional[str] = None
    no_intelligence: Optional[bool] = None
    record_session: Optional[bool] = None
    skip_goto_url_instruction: Optional[bool] = None
    browser_session_id: Optional[str] = None


class WaitUntilStateOptions(_Options):
    all_instructions_executed: bool = Field(
        default=False,
        description="Also require the last execution of the run to be completed",
    )
    min_wait_time: float = Field(
        default=0.0,
        ge=0,
        description="Seconds to sleep unconditionally before the first status fetch",
    )
    polling_interval: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds between status fetches (None uses the client default)",
    )
    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Maximum seconds to wait in total (None uses the client default)",
    )


class RunWorkflowAndWaitOptions(WorkflowRunOptions):
    polling_interval: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds between status fetches (None uses the client default)",
    )
    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Maximum seconds to wait for a terminal status (None uses the client default)",
    )
    return_intermediate_results: bool = False
    # Called with every fetched snapshot; may be a plain function or a coroutine function
    on_progress: Optional[Callable[[WorkflowRunResult], Any]] = None

    def run_options(self) -> WorkflowRunOptions:
        """The submission part of these options, preserving which fields were set."""
        submitted = self.model_fields_set & set(WorkflowRunOptions.model_fields)
        return WorkflowRunOptions.model_validate(
            {name: getattr(self, name) for name in submitted}
        )


class BrowserSessionCreateOptions(_Options):
    provider: Optional[str] = None
    use_proxy: Optional[bool] = None
    proxy_country: Optional[str] = None
    proxy_city: Optional[str] = None
    use_states: Optional[List[str]] = None
