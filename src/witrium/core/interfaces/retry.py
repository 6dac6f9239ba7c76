from typing import Protocol, Any, Awaitable, Callable

class RetryPort(Protocol):
    """Abstract retry interface for async operations.

    The client core never retries on its own; callers that want backoff
    across whole operations (e.g. a full run-and-wait) wrap them with an
    implementation of this port.
    """
    async def execute(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:  # pragma: no cover - protocol
        """Execute an async callable with retry semantics.

        Args:
            func: Async callable returning a result.
            *args/**kwargs: Passed to the callable.
            Supported kw overrides (optional): attempts, wait_initial, wait_max, retry_if.
        Returns:
            Result of the successful invocation.
        Raises:
            Propagates last exception after exhausting attempts.
        """
        ...
