"""
Data model for the Observer SDK.

Log entries, levels and client configuration, plus the wire form the
ingestion endpoint expects (camelCase keys, unset fields omitted).
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeAlias

# Arbitrary JSON-serializable payload (context, tags, meta)
JsonValue: TypeAlias = "None | bool | int | float | str | list[JsonValue] | dict[str, JsonValue]"

DEFAULT_BATCH_SIZE = 25
DEFAULT_FLUSH_INTERVAL = 3.0  # seconds
DEFAULT_TIMEOUT = 10.0  # seconds, default HTTP transport only
INGEST_PATH = "/observer/logs/ingest"


class LogLevel(str, Enum):
    """Severity levels accepted by the ingestion endpoint."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision, e.g. 2024-01-15T10:30:00.123Z."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class LogEntry:
    """One buffered log entry. The timestamp is stamped by the client."""

    level: LogLevel | str
    message: str
    timestamp: str
    context: JsonValue = None
    tags: JsonValue = None
    meta: JsonValue = None
    stack: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation; keys with no value are left out."""
        level = self.level.value if isinstance(self.level, LogLevel) else self.level
        return _compact(
            {
                "level": level,
                "message": self.message,
                "timestamp": self.timestamp,
                "context": self.context,
                "tags": self.tags,
                "stack": self.stack,
                "meta": self.meta,
            }
        )


@dataclass(frozen=True)
class ClientConfig:
    """
    Configuration for an ObserverClient.

    Set once at construction. Only the default context and tags can change
    afterwards, through ObserverClient.set_context() / set_tags().

    Args:
        base_url: Root URL of the observer service (trailing slashes are ignored)
        api_key: Static credential sent as ``Authorization: ApiKey <key>``
        app_name: Name of the emitting application
        source: Optional source category (e.g. "frontend", "backend")
        component_id: Component identifier, required by the server for source="backend"
        max_batch_size: Entries per request and the size that triggers a flush
        flush_interval: Seconds between the first buffered entry and the timed flush
        on_error: Called with the exception whenever a delivery attempt fails
        default_context: Initial context for entries logged without one
        default_tags: Initial tags stamped on every entry
        timeout: Request timeout of the default HTTP transport, in seconds
    """

    base_url: str
    api_key: str
    app_name: str
    source: str | None = None
    component_id: str | None = None
    max_batch_size: int = DEFAULT_BATCH_SIZE
    flush_interval: float = DEFAULT_FLUSH_INTERVAL
    on_error: Callable[[BaseException], None] | None = None
    default_context: JsonValue = None
    default_tags: JsonValue = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        # bool is an int subclass but never a meaningful size
        if isinstance(self.max_batch_size, bool) or not isinstance(self.max_batch_size, int):
            raise TypeError(f"max_batch_size must be an int, got {self.max_batch_size!r}")
        if isinstance(self.flush_interval, bool) or not isinstance(self.flush_interval, int | float):
            raise TypeError(f"flush_interval must be a number, got {self.flush_interval!r}")
        if self.max_batch_size < 1:
            raise ValueError(f"max_batch_size must be positive, got {self.max_batch_size}")
        if self.flush_interval <= 0:
            raise ValueError(f"flush_interval must be positive, got {self.flush_interval}")

    @property
    def ingest_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{INGEST_PATH}"


def build_ingest_body(config: ClientConfig, batch: list[LogEntry]) -> dict[str, Any]:
    """Request body for one batch: shared metadata plus the entries as ``logs``."""
    return _compact(
        {
            "appName": config.app_name,
            "source": config.source,
            "componentId": config.component_id,
            "logs": [entry.to_dict() for entry in batch],
        }
    )
