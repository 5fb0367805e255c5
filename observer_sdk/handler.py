"""
Python logging integration for the Observer SDK.

Routes standard ``logging`` records into an ObserverClient so existing code
ships logs without modification.

Usage:
    client = ObserverClient(config)
    setup_logging(client)

    import logging
    logger = logging.getLogger(__name__)
    logger.info("Payment processed", extra={"user_id": "u123"})
"""

import json
import logging
import traceback

from .client import ObserverClient
from .models import LogLevel

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
        "asctime",
    )
)

# The SDK's own diagnostics must not be shipped back through the SDK
_SDK_LOGGER_PREFIX = "observer_sdk"


def level_for(levelno: int) -> LogLevel:
    """Map a logging level number onto the observer levels."""
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


def _extra_attributes(record: logging.LogRecord) -> dict:
    attributes = {}
    for key, value in record.__dict__.items():
        if key in _RECORD_ATTRIBUTES:
            continue
        # Only include serializable values
        if isinstance(value, str | int | float | bool | type(None)):
            attributes[key] = value
        elif isinstance(value, list | dict):
            try:
                json.dumps(value)
                attributes[key] = value
            except (TypeError, ValueError):
                pass
    return attributes


class ObserverHandler(logging.Handler):
    """
    Logging handler that enqueues records on an ObserverClient.

    The message is the formatted record, so an attached Formatter applies.
    ``extra`` attributes become the entry context, the logger name goes into
    meta, and exception info becomes the stack of error entries.
    """

    def __init__(self, client: ObserverClient, min_level: int = logging.INFO):
        super().__init__(level=min_level)
        self.client = client

    def emit(self, record: logging.LogRecord):
        if record.name == _SDK_LOGGER_PREFIX or record.name.startswith(_SDK_LOGGER_PREFIX + "."):
            return

        try:
            level = level_for(record.levelno)
            message = self.format(record)
            context = _extra_attributes(record) or None
            meta = {"logger": record.name}

            if level is LogLevel.ERROR:
                stack = None
                if record.exc_info and record.exc_info[1] is not None:
                    stack = "".join(traceback.format_exception(record.exc_info[1]))
                self.client.error(message, context, meta, stack)
            else:
                self.client.log(level, message, context, meta)

        except Exception:
            self.handleError(record)


def setup_logging(
    client: ObserverClient,
    min_level: int = logging.INFO,
    also_console: bool = True,
) -> ObserverHandler:
    """
    Attach an ObserverHandler to the root logger.

    Args:
        client: Client that receives the records
        min_level: Minimum log level to ship
        also_console: Also log to console (default: True)

    Returns:
        The installed handler (remove it with logging.getLogger().removeHandler)
    """
    handler = ObserverHandler(client, min_level=min_level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)

    if also_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        root_logger.addHandler(console_handler)

    # Set level if not already set
    if root_logger.level == logging.NOTSET:
        root_logger.setLevel(min_level)

    return handler
