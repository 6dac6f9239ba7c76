from typing import Any, Optional

from witrium.core.models.status import status_name


class WitriumClientException(Exception):
    """Base exception for all client failures.

    Attributes:
        message: Human-readable error description
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RemoteRequestError(WitriumClientException):
    """Raised when a request to the service fails or returns a non-2xx response.

    Attributes:
        detail: Server-provided detail message, or the raw response body
        status_code: HTTP status code (None for timeouts and connection errors)
    """
    def __init__(
        self,
        message: str,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.detail = detail if detail is not None else message
        self.status_code = status_code
        super().__init__(message)

    def for_action(self, action: str) -> "RemoteRequestError":
        """Copy of this error with the failed operation named in the message."""
        code = self.status_code if self.status_code is not None else "unknown"
        return RemoteRequestError(
            f"Error {action}: {self.detail} (Status code: {code})",
            detail=self.detail,
            status_code=self.status_code,
        )


class PollingTimeoutError(WitriumClientException):
    """Raised when a polling loop exhausts its timeout without meeting its condition.

    Attributes:
        run_id: Run that was being polled
        timeout_seconds: Configured timeout value
    """
    def __init__(self, message: str, run_id: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self.run_id = run_id
        self.timeout_seconds = timeout_seconds
        super().__init__(message)


class TerminalMismatchError(WitriumClientException):
    """Raised when a run ends in a terminal status other than the awaited one.

    Further polling cannot change a terminal outcome, so this is raised on the
    first snapshot that shows it.
    """
    def __init__(self, run_id: str, current_status: Any, target_status: Any):
        self.run_id = run_id
        self.current_status = current_status
        self.target_status = target_status
        message = (
            f"Workflow run reached terminal status '{status_name(current_status)}' "
            f"before reaching target status '{status_name(target_status)}'"
        )
        super().__init__(message)


class SessionContextError(WitriumClientException):
    """Raised when two tasks try to hold the same client's active session at once."""
