"""
Observer SDK - Client library for shipping logs to an observer service.

This package provides:
- ObserverClient: In-memory batching with size and time flush triggers
- ObserverHandler: Bridge from Python logging into an ObserverClient

Usage:
    from observer_sdk import ClientConfig, ObserverClient

Example:
    client = ObserverClient(
        ClientConfig(
            base_url="https://observer.example.com",
            api_key="key_xxx",
            app_name="my-service",
        )
    )
    client.info("Service started")
    await client.shutdown()
"""

from .client import ObserverClient, create_observer
from .errors import IngestRejectedError, ObserverError, TransportUnavailableError
from .handler import ObserverHandler, setup_logging
from .models import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_FLUSH_INTERVAL,
    INGEST_PATH,
    ClientConfig,
    JsonValue,
    LogEntry,
    LogLevel,
)
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle
from .transport import HttpxTransport, Transport, TransportResponse

__all__ = [
    # Client
    "ObserverClient",
    "create_observer",
    "ClientConfig",
    "LogEntry",
    "LogLevel",
    "JsonValue",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_FLUSH_INTERVAL",
    "INGEST_PATH",
    # Capabilities
    "Transport",
    "TransportResponse",
    "HttpxTransport",
    "Scheduler",
    "TimerHandle",
    "AsyncioScheduler",
    # Logging
    "ObserverHandler",
    "setup_logging",
    # Errors
    "ObserverError",
    "TransportUnavailableError",
    "IngestRejectedError",
]

__version__ = "1.0.0"
