"""Observer protocol for workflow run progress.

Observers receive every submission and snapshot seen by the polling engine,
keeping side effects such as history recording out of the polling loop.
"""

from typing import Protocol

from witrium.core.models.run import WorkflowRunResult, WorkflowRunSubmitted


class RunObserver(Protocol):
    """Observer protocol for run lifecycle events.

    - on_run_submitted: After the service accepted a workflow run
    - on_snapshot: After every status fetch made while polling
    - on_run_finished: After a polled run reached a terminal status

    Exceptions raised by observers are logged and never interrupt polling.
    """

    async def on_run_submitted(self, submitted: WorkflowRunSubmitted) -> None:
        ...

    async def on_snapshot(self, snapshot: WorkflowRunResult) -> None:
        ...

    async def on_run_finished(self, snapshot: WorkflowRunResult) -> None:
        ...
