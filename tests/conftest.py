"""Shared fixtures: a fake transport and a virtual clock for the polling engine."""

from unittest.mock import AsyncMock

import pytest

from witrium.core.config import ClientConfig
from witrium.core.managers.run_manager import RunManager


class VirtualClock:
    """Monotonic clock advanced only by the engine's own sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def snapshot(status, run_id="r1", executions=None, **extra):
    """Results document as returned by GET /v1/runs/{run_id}/results."""
    body = {"workflow_id": "wf1", "run_id": run_id, "status": status}
    if executions is not None:
        body["executions"] = [
            {"status": s, "instruction_order": i, "instruction": f"step {i}"}
            for i, s in enumerate(executions)
        ]
    body.update(extra)
    return body


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def http():
    """Fake HttpClientPort; tests set return values / side effects per method."""
    return AsyncMock()


@pytest.fixture
def run_manager(http, clock):
    return RunManager(http, config=ClientConfig(), clock=clock, sleep=clock.sleep)
