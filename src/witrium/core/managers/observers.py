"""Concrete observer implementations for workflow runs."""

import logging
from typing import Dict, List, Optional

from witrium.core.models.run import WorkflowRunResult, WorkflowRunSubmitted


logger = logging.getLogger(__name__)


class SnapshotHistoryObserver:
    """Keeps every snapshot seen while polling, grouped by run id.

    Useful for diagnostics after the fact, e.g. to see which execution was
    the last one to change before a run failed. Histories are held in memory
    for the lifetime of the observer; call `clear` to drop them.
    """

    def __init__(self, max_snapshots_per_run: Optional[int] = None):
        self._history: Dict[str, List[WorkflowRunResult]] = {}
        self._finished: Dict[str, WorkflowRunResult] = {}
        self._max = max_snapshots_per_run

    async def on_run_submitted(self, submitted: WorkflowRunSubmitted) -> None:
        self._history.setdefault(submitted.run_id, [])
        logger.debug("[observer:history] tracking run_id=%s", submitted.run_id)

    async def on_snapshot(self, snapshot: WorkflowRunResult) -> None:
        snapshots = self._history.setdefault(snapshot.run_id, [])
        snapshots.append(snapshot)
        if self._max is not None and len(snapshots) > self._max:
            del snapshots[: len(snapshots) - self._max]

    async def on_run_finished(self, snapshot: WorkflowRunResult) -> None:
        self._finished[snapshot.run_id] = snapshot
        logger.debug(
            "[observer:history] run finished run_id=%s status=%s",
            snapshot.run_id,
            snapshot.status,
        )

    def history(self, run_id: str) -> List[WorkflowRunResult]:
        return list(self._history.get(run_id, []))

    def final(self, run_id: str) -> Optional[WorkflowRunResult]:
        return self._finished.get(run_id)

    def clear(self) -> None:
        self._history.clear()
        self._finished.clear()
