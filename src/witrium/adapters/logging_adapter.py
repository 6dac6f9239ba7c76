import logging
from witrium.core.interfaces.logging import LoggingPort
from witrium.core.logging_config import coerce_level

class LoggingAdapter(LoggingPort):
    """Concrete logging adapter.

    Delegates to Python's logging. It does NOT add its own handlers; sinks
    belong to the application (see `configure_logging`). Records propagate
    to whatever the root logger has installed.
    """

    def __init__(self, name: str = "witrium", log_level: int | str = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(coerce_level(log_level))
        self.logger.propagate = True

    def info(self, msg: str, *args):
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args):
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args):
        self.logger.error(msg, *args)

    def debug(self, msg: str, *args):
        self.logger.debug(msg, *args)
