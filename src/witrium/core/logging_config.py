"""Central logging configuration utilities.

The client library never installs handlers on import; applications that want
the default layout call `configure_logging` once from their entry point.
Library code only emits through `LoggingPort` or module loggers.

Records are routed to two sinks: stdout for DEBUG/INFO and stderr for
WARNING and above. The run id of the workflow run currently being polled is
injected into every record from a context variable, so log lines from
concurrent polling loops can be told apart.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional
import contextvars

# Run id context variable (set by the polling loops in RunManager)
run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "run_id", default="-"
)

DEFAULT_FORMAT = (
    "[%(asctime)s] %(levelname)s %(name)s run=%(run_id)s: %(message)s"
)


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    return logging.getLevelNamesMapping().get(key, logging.INFO)


class _RunIdFilter(logging.Filter):
    """Inject run id from contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


class _MinLevelFilter(logging.Filter):
    def __init__(self, min_level: int):
        super().__init__()
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.min_level


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
) -> None:
    """Configure root logger with separate stdout/stderr sinks & run id."""
    numeric_level = coerce_level(level)
    fmt = fmt or DEFAULT_FORMAT

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Clear existing handlers to avoid duplication on repeated calls
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt)
    run_filter = _RunIdFilter()

    # stdout handler for DEBUG/INFO
    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))
    stdout_handler.addFilter(run_filter)
    stdout_handler.setFormatter(formatter)

    # stderr handler for WARNING+
    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.addFilter(_MinLevelFilter(logging.WARNING))
    stderr_handler.addFilter(run_filter)
    stderr_handler.setFormatter(formatter)

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)

    logging.getLogger("witrium").debug("Logging configured level=%s", numeric_level)
