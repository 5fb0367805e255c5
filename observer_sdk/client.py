"""
Observer client - batched log shipping to the observer ingestion endpoint.

Entries are buffered in memory and sent in batches, either as soon as the
buffer holds ``max_batch_size`` entries or ``flush_interval`` seconds after
the first entry following the previous flush. A failed batch goes back to
the front of the buffer and is retried on the next trigger.

Usage:
    from observer_sdk import ClientConfig, ObserverClient

    async def main():
        client = ObserverClient(
            ClientConfig(
                base_url="https://observer.example.com",
                api_key="key_xxx",
                app_name="billing",
                source="backend",
                component_id="billing-api",
                on_error=lambda e: print(f"log shipping failed: {e}"),
            )
        )
        client.set_tags({"region": "eu-west-1"})
        client.info("Payment processed", {"user_id": "u123"})
        try:
            ...
        except Exception as e:
            client.capture_error(e)
        await client.shutdown()  # Final flush
"""

import asyncio
import json
import logging
import traceback
from typing import Any

from .errors import IngestRejectedError
from .models import ClientConfig, JsonValue, LogEntry, LogLevel, build_ingest_body, utc_timestamp
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle
from .transport import HttpxTransport, Transport, build_headers

logger = logging.getLogger(__name__)


class ObserverClient:
    """
    Batched log client for the observer service.

    Enqueueing never blocks and never raises, and may happen from any thread.
    Buffer updates always run on the scheduler's loop thread. Delivery
    failures are only visible through ``ClientConfig.on_error``; the affected
    entries stay buffered, oldest first, until a later attempt succeeds.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Transport | None = None,
        scheduler: Scheduler | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration
            transport: HTTP capability (defaults to HttpxTransport)
            scheduler: Timer/task capability (defaults to AsyncioScheduler)
        """
        self.config = config
        self._transport = transport or HttpxTransport(timeout=config.timeout)
        self._scheduler = scheduler or AsyncioScheduler()

        self._buffer: list[LogEntry] = []
        self._flush_timer: TimerHandle | None = None
        self._closed = False

        self._default_context: JsonValue = config.default_context
        self._default_tags: JsonValue = config.default_tags

        # Stats
        self._sent_count = 0
        self._error_count = 0
        self._last_error: str | None = None

    def set_context(self, context: JsonValue):
        """Set the context used by later entries logged without one."""
        self._default_context = context

    def set_tags(self, tags: JsonValue):
        """Set the tags stamped on every later entry."""
        self._default_tags = tags

    def _enqueue(
        self,
        level: LogLevel | str,
        message: str,
        context: JsonValue = None,
        meta: JsonValue = None,
        stack: str | None = None,
    ):
        """Build an entry and hand it to the loop thread for buffering.

        Safe to call from any thread. The entry is stamped here, so its
        timestamp reflects the caller, not the hand-off.
        """
        try:
            level = LogLevel(level)
        except ValueError:
            logger.debug(f"Unknown log level {level!r}, sending as-is")

        entry = LogEntry(
            level=level,
            message=message,
            timestamp=utc_timestamp(),
            context=context if context is not None else self._default_context,
            tags=self._default_tags,
            meta=meta,
            stack=stack,
        )
        self._scheduler.call_soon(lambda: self._accept(entry))

    def _accept(self, entry: LogEntry):
        """Buffer an entry and evaluate both flush triggers. Loop thread only."""
        self._buffer.append(entry)

        if self._closed:
            return

        self._schedule_flush()
        if len(self._buffer) >= self.config.max_batch_size:
            self._start_delivery()

    def log(self, level: LogLevel | str, message: str, context: JsonValue = None, meta: JsonValue = None):
        """Log a message at the given level."""
        self._enqueue(level, message, context, meta)

    def debug(self, message: str, context: JsonValue = None, meta: JsonValue = None):
        """Log a debug message."""
        self._enqueue(LogLevel.DEBUG, message, context, meta)

    def info(self, message: str, context: JsonValue = None, meta: JsonValue = None):
        """Log an info message."""
        self._enqueue(LogLevel.INFO, message, context, meta)

    def warn(self, message: str, context: JsonValue = None, meta: JsonValue = None):
        """Log a warning message."""
        self._enqueue(LogLevel.WARN, message, context, meta)

    def error(
        self,
        message: str,
        context: JsonValue = None,
        meta: JsonValue = None,
        stack: str | None = None,
    ):
        """Log an error message, optionally with a stack trace."""
        self._enqueue(LogLevel.ERROR, message, context, meta, stack)

    def capture_error(self, err: Any, context: JsonValue = None, meta: JsonValue = None):
        """
        Log an exception (or any other value) at error level.

        Exceptions contribute their message and formatted traceback. Other
        values are converted with str() and carry no stack.
        """
        if isinstance(err, BaseException):
            message = str(err)
            stack = "".join(traceback.format_exception(err))
        else:
            message = str(err)
            stack = None
        self.error(message, context, meta, stack)

    def _schedule_flush(self):
        """Arm the flush timer unless one is already pending."""
        if self._flush_timer is not None:
            return
        self._flush_timer = self._scheduler.call_later(self.config.flush_interval, self._on_flush_timer)

    def _on_flush_timer(self):
        self._flush_timer = None
        self._start_delivery()

    def _claim_batch(self) -> list[LogEntry]:
        """Remove and return up to max_batch_size entries from the front."""
        size = self.config.max_batch_size
        batch = self._buffer[:size]
        del self._buffer[:size]
        return batch

    def _requeue(self, batch: list[LogEntry]):
        """Put a claimed batch back in front of everything buffered since."""
        self._buffer[:0] = batch

    def _start_delivery(self):
        """Claim a batch now and deliver it in the background."""
        batch = self._claim_batch()
        if not batch:
            return

        try:
            self._scheduler.spawn(lambda: self._deliver(batch))
        except RuntimeError as e:
            logger.debug(f"Cannot start background delivery ({e}), keeping {len(batch)} entries buffered")
            self._requeue(batch)

    async def _deliver(self, batch: list[LogEntry]):
        """Send one claimed batch; on any failure put it back and report."""
        try:
            body = json.dumps(build_ingest_body(self.config, batch)).encode("utf-8")
            response = await self._transport.post(
                self.config.ingest_url,
                build_headers(self.config.api_key),
                body,
            )
            if not response.ok:
                raise IngestRejectedError(response.status_code)
        except asyncio.CancelledError:
            self._requeue(batch)
            raise
        except Exception as e:
            self._requeue(batch)
            self._record_failure(e, len(batch))
            return

        self._sent_count += len(batch)
        logger.debug(f"Delivered {len(batch)} log entries")

    def _record_failure(self, error: Exception, batch_size: int):
        self._error_count += 1
        self._last_error = str(error)
        logger.debug(f"Delivery of {batch_size} log entries failed, requeued: {error}")

        if self.config.on_error is None:
            return
        try:
            self.config.on_error(error)
        except Exception as e:
            logger.warning(f"Observer on_error callback error: {e}")

    async def flush(self):
        """
        Run one delivery attempt for the oldest buffered entries.

        Does nothing when the buffer is empty. Never raises; failures go to
        ``on_error``.
        """
        batch = self._claim_batch()
        if not batch:
            return
        await self._deliver(batch)

    async def shutdown(self):
        """
        Stop automatic flushing and send what is buffered.

        Cancels the pending timer, performs one final flush and waits for
        background deliveries already in flight. Entries logged afterwards
        are kept but only sent by an explicit flush().
        """
        self._closed = True
        if self._flush_timer is not None:
            self._flush_timer.cancel()
            self._flush_timer = None

        # Entries handed over from other threads land on the next loop pass
        await asyncio.sleep(0)
        await self.flush()
        await self._scheduler.wait_idle()
        logger.debug(f"Observer client shut down, {len(self._buffer)} entries still buffered")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def buffered(self) -> tuple[LogEntry, ...]:
        """Snapshot of the pending entries, oldest first."""
        return tuple(self._buffer)

    def get_stats(self) -> dict:
        """Get shipping statistics."""
        return {
            "sent_count": self._sent_count,
            "error_count": self._error_count,
            "buffer_size": len(self._buffer),
            "last_error": self._last_error,
            "timer_pending": self._flush_timer is not None,
            "closed": self._closed,
        }


def create_observer(config: ClientConfig, **kwargs) -> ObserverClient:
    """Create an ObserverClient; keyword arguments go to the constructor."""
    return ObserverClient(config, **kwargs)
