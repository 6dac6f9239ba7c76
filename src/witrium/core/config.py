"""Configuration model for the client.

Holds the defaults that per-call options fall back to, so applications can
tune polling behaviour once instead of on every call.
"""

from pydantic import BaseModel, Field


class ClientConfig(BaseModel):
    """Configuration for WitriumClient behavior.

    Attributes:
        request_timeout: Total seconds allowed for a single HTTP request
        polling_interval: Seconds between fetches in run_workflow_and_wait
        polling_timeout: Maximum seconds run_workflow_and_wait waits for a terminal status
        wait_polling_interval: Seconds between fetches in wait_until_state
        wait_timeout: Maximum seconds wait_until_state waits for its condition
    """

    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Total timeout in seconds for a single request to the service"
    )

    polling_interval: float = Field(
        default=5.0,
        gt=0,
        description="Interval in seconds between status fetches while running a workflow to completion"
    )

    polling_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Maximum time in seconds to wait for a workflow run to reach a terminal status"
    )

    wait_polling_interval: float = Field(
        default=2.0,
        gt=0,
        description="Interval in seconds between status fetches while waiting for a target status"
    )

    wait_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Maximum time in seconds to wait for a target status"
    )

    model_config = {
        "frozen": True,  # Immutable after creation for safety
        "extra": "forbid",  # Reject unknown fields
    }

    @classmethod
    def from_settings(cls, settings) -> "ClientConfig":
        """Factory method to construct config from a WitriumSettings instance."""
        return cls(
            request_timeout=settings.WITRIUM_REQUEST_TIMEOUT,
            polling_interval=settings.WITRIUM_POLLING_INTERVAL,
            polling_timeout=settings.WITRIUM_POLLING_TIMEOUT,
            wait_polling_interval=settings.WITRIUM_WAIT_POLLING_INTERVAL,
            wait_timeout=settings.WITRIUM_WAIT_TIMEOUT,
        )
