from enum import StrEnum
from typing import Any


class StatusCode(StrEnum):
    """Run and execution status codes as single-character wire tags."""

    PENDING = "P"
    RUNNING = "R"
    COMPLETED = "C"
    FAILED = "F"
    CANCELLED = "X"


TERMINAL_STATUSES = frozenset(
    {StatusCode.COMPLETED, StatusCode.FAILED, StatusCode.CANCELLED}
)

STATUS_NAMES = {
    StatusCode.PENDING: "pending",
    StatusCode.RUNNING: "running",
    StatusCode.COMPLETED: "completed",
    StatusCode.FAILED: "failed",
    StatusCode.CANCELLED: "cancelled",
}


def status_name(code: Any) -> str:
    """Display name for a status code; unknown codes are returned as-is."""
    try:
        return STATUS_NAMES[StatusCode(code)]
    except ValueError:
        return str(code)


def is_terminal(code: Any) -> bool:
    try:
        return StatusCode(code) in TERMINAL_STATUSES
    except ValueError:
        return False
