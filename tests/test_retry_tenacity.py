"""Tests for the caller-side TenacityRetryAdapter."""

from unittest.mock import AsyncMock

import pytest

from witrium.adapters.retry_tenacity import TenacityRetryAdapter, is_transient_error
from witrium.core.exceptions import (
    PollingTimeoutError,
    RemoteRequestError,
    TerminalMismatchError,
)


class TestIsTransientError:
    @pytest.mark.parametrize("status", [None, 500, 502, 503, 504])
    def test_transient(self, status):
        assert is_transient_error(RemoteRequestError("x", status_code=status))

    @pytest.mark.parametrize("status", [400, 401, 404, 422])
    def test_client_errors_are_not_transient(self, status):
        assert not is_transient_error(RemoteRequestError("x", status_code=status))

    def test_polling_outcomes_are_not_transient(self):
        assert not is_transient_error(PollingTimeoutError("slow"))
        assert not is_transient_error(TerminalMismatchError("r1", "F", "C"))


class TestTenacityRetryAdapter:
    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self):
        func = AsyncMock(side_effect=[RemoteRequestError("down", status_code=503), "ok"])
        retry = TenacityRetryAdapter(attempts=3, wait_initial=0.001, wait_max=0.002)

        assert await retry.execute(func, "wf1", timeout=5) == "ok"
        assert func.await_count == 2
        func.assert_awaited_with("wf1", timeout=5)

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        func = AsyncMock(side_effect=RemoteRequestError("down"))
        retry = TenacityRetryAdapter(attempts=3, wait_initial=0.001, wait_max=0.002)

        with pytest.raises(RemoteRequestError):
            await retry.execute(func)
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_non_transient_fails_immediately(self):
        func = AsyncMock(side_effect=RemoteRequestError("bad", status_code=400))
        retry = TenacityRetryAdapter(attempts=5, wait_initial=0.001, wait_max=0.002)

        with pytest.raises(RemoteRequestError):
            await retry.execute(func)
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_call_time_overrides(self):
        func = AsyncMock(side_effect=ValueError("flaky"))
        retry = TenacityRetryAdapter(wait_initial=0.001, wait_max=0.002)

        with pytest.raises(ValueError):
            await retry.execute(func, attempts=2, retry_if=lambda exc: isinstance(exc, ValueError))
        assert func.await_count == 2
