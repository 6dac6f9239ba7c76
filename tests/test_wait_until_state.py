"""Tests for RunManager.wait_until_state.

The engine runs against a fake transport and a virtual clock, so every
assertion about "how many fetches" and "how long it slept" is exact.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import snapshot
from witrium.core.exceptions import PollingTimeoutError, TerminalMismatchError
from witrium.core.managers.run_manager import RunManager
from witrium.core.models.options import WaitUntilStateOptions
from witrium.core.models.status import StatusCode


class TestReachingTarget:
    @pytest.mark.asyncio
    async def test_returns_on_second_fetch_when_running(self, run_manager, http, clock):
        http.get.side_effect = [snapshot("P"), snapshot("R"), snapshot("C")]

        result = await run_manager.wait_until_state("r1", StatusCode.RUNNING)

        assert result.status == "R"
        assert http.get.await_count == 2
        http.get.assert_awaited_with("/v1/runs/r1/results")

    @pytest.mark.asyncio
    async def test_returns_on_third_fetch_when_completed(self, run_manager, http):
        http.get.side_effect = [snapshot("P"), snapshot("R"), snapshot("C")]

        result = await run_manager.wait_until_state("r1", "C")

        assert result.status == StatusCode.COMPLETED
        assert http.get.await_count == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["P", "R", "C", "F", "X"])
    async def test_first_fetch_match_returns_without_sleeping(self, run_manager, http, clock, target):
        http.get.return_value = snapshot(target)

        result = await run_manager.wait_until_state("r1", target)

        assert result.status == target
        assert http.get.await_count == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_sleeps_polling_interval_between_fetches(self, run_manager, http, clock):
        http.get.side_effect = [snapshot("P"), snapshot("P"), snapshot("R")]

        await run_manager.wait_until_state(
            "r1", "R", WaitUntilStateOptions(polling_interval=0.5)
        )

        assert clock.sleeps == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_min_wait_time_precedes_first_fetch(self, http, clock):
        order = []

        async def fake_sleep(seconds):
            order.append(("sleep", seconds))
            await clock.sleep(seconds)

        async def fake_get(path):
            order.append(("get", path))
            return snapshot("R")

        http.get.side_effect = fake_get
        manager = RunManager(http, clock=clock, sleep=fake_sleep)

        await manager.wait_until_state("r1", "R", WaitUntilStateOptions(min_wait_time=3))

        assert order == [("sleep", 3), ("get", "/v1/runs/r1/results")]

    @pytest.mark.asyncio
    async def test_min_wait_time_does_not_count_against_timeout(self, run_manager, http, clock):
        http.get.return_value = snapshot("R")

        result = await run_manager.wait_until_state(
            "r1", "R", WaitUntilStateOptions(min_wait_time=10, timeout=1)
        )

        assert result.status == "R"


class TestTerminalMismatch:
    @pytest.mark.asyncio
    async def test_fast_failure_raises_after_two_fetches(self, run_manager, http):
        http.get.side_effect = [snapshot("P"), snapshot("F"), snapshot("F")]

        with pytest.raises(TerminalMismatchError) as excinfo:
            await run_manager.wait_until_state("r1", "C")

        assert http.get.await_count == 2
        assert "failed" in str(excinfo.value)
        assert "completed" in str(excinfo.value)
        assert excinfo.value.current_status == "F"
        assert excinfo.value.target_status == "C"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("observed", ["C", "F", "X"])
    @pytest.mark.parametrize("target", ["C", "F", "X"])
    async def test_other_terminal_status_fails_on_first_observation(
        self, run_manager, http, clock, observed, target
    ):
        if observed == target:
            pytest.skip("same status is success")
        http.get.return_value = snapshot(observed)

        with pytest.raises(TerminalMismatchError):
            await run_manager.wait_until_state("r1", target)

        assert http.get.await_count == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["P", "R"])
    async def test_waiting_for_non_terminal_after_completion_is_mismatch(self, run_manager, http, target):
        http.get.return_value = snapshot("C")

        with pytest.raises(TerminalMismatchError):
            await run_manager.wait_until_state("r1", target)

        assert http.get.await_count == 1


class TestAllInstructionsExecuted:
    @pytest.mark.asyncio
    async def test_keeps_polling_until_last_execution_completed(self, run_manager, http):
        http.get.side_effect = [
            snapshot("R", executions=["C", "R"]),
            snapshot("R", executions=["C", "C", "P"]),
            snapshot("R", executions=["C", "C", "C"]),
        ]

        result = await run_manager.wait_until_state(
            "r1", "R", WaitUntilStateOptions(all_instructions_executed=True)
        )

        assert http.get.await_count == 3
        assert result.executions[-1].status == StatusCode.COMPLETED

    @pytest.mark.asyncio
    async def test_only_last_execution_is_inspected(self, run_manager, http):
        http.get.return_value = snapshot("R", executions=["F", "C"])

        result = await run_manager.wait_until_state(
            "r1", "R", WaitUntilStateOptions(all_instructions_executed=True)
        )

        assert result.status == "R"

    @pytest.mark.asyncio
    async def test_status_match_without_completed_executions_times_out(self, run_manager, http, clock):
        http.get.return_value = snapshot("R", executions=["C", "R"])

        with pytest.raises(PollingTimeoutError) as excinfo:
            await run_manager.wait_until_state(
                "r1",
                "R",
                WaitUntilStateOptions(all_instructions_executed=True, polling_interval=1, timeout=5),
            )

        assert "all instructions executed" in str(excinfo.value)
        assert "running" in str(excinfo.value)
        assert http.get.await_count == 5

    @pytest.mark.asyncio
    async def test_empty_execution_list_never_counts_as_done(self, run_manager, http):
        http.get.return_value = snapshot("R", executions=[])

        with pytest.raises(PollingTimeoutError):
            await run_manager.wait_until_state(
                "r1",
                "R",
                WaitUntilStateOptions(all_instructions_executed=True, polling_interval=1, timeout=3),
            )


class TestTimeout:
    @pytest.mark.asyncio
    async def test_timeout_is_bounded_by_elapsed_time(self, run_manager, http, clock):
        http.get.return_value = snapshot("P")

        with pytest.raises(PollingTimeoutError) as excinfo:
            await run_manager.wait_until_state(
                "r1", "C", WaitUntilStateOptions(polling_interval=0.1, timeout=0.25)
            )

        assert 2 <= http.get.await_count <= 3
        assert str(excinfo.value) == (
            "Workflow run did not reach status 'completed' within 0.25 seconds"
        )
        assert excinfo.value.run_id == "r1"
        assert excinfo.value.timeout_seconds == 0.25

    @pytest.mark.asyncio
    async def test_timeout_with_real_clock(self):
        http = AsyncMock()
        http.get.return_value = snapshot("P")
        manager = RunManager(http)

        with pytest.raises(PollingTimeoutError):
            await manager.wait_until_state(
                "r1", "C", WaitUntilStateOptions(polling_interval=0.1, timeout=0.25)
            )

        assert 2 <= http.get.await_count <= 3

    @pytest.mark.asyncio
    async def test_unset_options_use_client_config(self, http, clock):
        from witrium.core.config import ClientConfig

        http.get.return_value = snapshot("P")
        manager = RunManager(
            http,
            config=ClientConfig(wait_polling_interval=2, wait_timeout=7),
            clock=clock,
            sleep=clock.sleep,
        )

        with pytest.raises(PollingTimeoutError):
            await manager.wait_until_state("r1", "C")

        assert set(clock.sleeps) == {2}
        assert http.get.await_count == 4


class TestValidation:
    @pytest.mark.asyncio
    async def test_blank_run_id_rejected_before_request(self, run_manager, http):
        with pytest.raises(ValueError):
            await run_manager.wait_until_state("  ", "C")
        http.get.assert_not_awaited()

    def test_negative_durations_rejected(self):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            WaitUntilStateOptions(min_wait_time=-1)
        with pytest.raises(ValidationError):
            WaitUntilStateOptions(polling_interval=0)
