from typing import Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings

from witrium.adapters.logging_adapter import LoggingAdapter
from witrium.core.interfaces.logging import LoggingPort


# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class WitriumSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }
    WITRIUM_API_TOKEN: Optional[SecretStr] = None
    WITRIUM_BASE_URL: str = "https://api.witrium.com"
    WITRIUM_LOG_LEVEL: str = "INFO"
    # Total timeout of a single HTTP request, seconds
    WITRIUM_REQUEST_TIMEOUT: float = 60.0
    # run_workflow_and_wait defaults
    WITRIUM_POLLING_INTERVAL: float = 5.0
    WITRIUM_POLLING_TIMEOUT: float = 300.0
    # wait_until_state defaults
    WITRIUM_WAIT_POLLING_INTERVAL: float = 2.0
    WITRIUM_WAIT_TIMEOUT: float = 60.0

    @field_validator("WITRIUM_BASE_URL", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class _DelegatingLogger(LoggingPort):
    """Stable module-level logger whose backing adapter can be swapped."""

    def __init__(self, target: LoggingPort):
        self._target = target

    def info(self, msg: str, *args):
        self._target.info(msg, *args)

    def warning(self, msg: str, *args):
        self._target.warning(msg, *args)

    def error(self, msg: str, *args):
        self._target.error(msg, *args)

    def debug(self, msg: str, *args):
        self._target.debug(msg, *args)


app_settings = WitriumSettings()

logger = _DelegatingLogger(LoggingAdapter("witrium", app_settings.WITRIUM_LOG_LEVEL))


def set_logger(adapter: LoggingPort) -> None:
    """Route all client log output through `adapter`."""
    logger._target = adapter
