import base64
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import BaseModel

from witrium.core.models.base import Status, WireModel
from witrium.core.models.status import StatusCode, is_terminal

ResultPayload = Union[dict[str, Any], List[Any]]


class FileUpload(BaseModel):
    filename: str
    data: str  # base64 encoded file content

    @classmethod
    def from_bytes(cls, filename: str, content: bytes) -> "FileUpload":
        return cls(filename=filename, data=base64.b64encode(content).decode("ascii"))

    @classmethod
    def from_path(cls, path: str | Path) -> "FileUpload":
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes())


class WorkflowRunSubmitted(WireModel):
    workflow_id: str
    run_id: str
    status: Status


class AgentExecution(WireModel):
    """One instruction of a workflow run as executed by the agent."""

    status: Status
    instruction_order: int
    instruction: str
    result: Optional[ResultPayload] = None
    result_format: Optional[str] = None
    error_message: Optional[str] = None


class WorkflowRunResult(WireModel):
    """Snapshot of a workflow run returned by the results endpoint.

    Every fetch returns a complete document, never a delta.
    """

    workflow_id: str
    run_id: str
    status: Status
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    message: Optional[str] = None
    executions: Optional[List[AgentExecution]] = None
    result: Optional[ResultPayload] = None
    result_format: Optional[str] = None
    error_message: Optional[str] = None

    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def all_executions_completed(self) -> bool:
        """Only the last execution decides; an empty list never counts as done."""
        if not self.executions:
            return False
        return self.executions[-1].status == StatusCode.COMPLETED


class TalentRunResult(WireModel):
    status: Status
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    message: Optional[str] = None
    result: Optional[Any] = None
    result_format: Optional[str] = None
    error_message: Optional[str] = None


class Workflow(WireModel):
    uuid: str
    name: str
    description: Optional[str] = None


class WorkflowRunExecution(WireModel):
    instruction_id: str
    instruction: str
    status: Status
    result: Optional[ResultPayload] = None
    result_format: Optional[str] = None
    message: Optional[str] = None
    error_message: Optional[str] = None


class WorkflowRun(WireModel):
    uuid: str
    session_id: Optional[str] = None  # browser session uuid
    workflow: Workflow
    run_type: str
    triggered_by: str
    status: Status
    session_active: bool = False
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    error_message: Optional[str] = None
    executions: Optional[List[WorkflowRunExecution]] = None
