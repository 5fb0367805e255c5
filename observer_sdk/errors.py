"""Exceptions reported through ClientConfig.on_error."""


class ObserverError(Exception):
    """Base class for Observer SDK delivery errors."""


class TransportUnavailableError(ObserverError):
    """The HTTP capability is missing, e.g. the injected client was closed."""


class IngestRejectedError(ObserverError):
    """The ingestion endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int):
        super().__init__(f"Observer ingest failed: {status_code}")
        self.status_code = status_code
