"""
HTTP transport for the Observer SDK.

The client only depends on the ``Transport`` protocol: an async ``post`` that
returns a ``TransportResponse``. ``HttpxTransport`` is the default
implementation. Tests substitute their own.

Usage:
    transport = HttpxTransport(timeout=5.0)
    response = await transport.post(url, headers, body)
    if not response.ok:
        ...
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from .errors import TransportUnavailableError
from .models import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Outcome of a single POST."""

    status_code: int

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(Protocol):
    """Capability that performs one HTTP POST."""

    async def post(self, url: str, headers: dict[str, str], body: bytes) -> TransportResponse: ...


def build_headers(api_key: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"ApiKey {api_key}",
    }


class HttpxTransport:
    """
    Transport backed by httpx.

    With no ``client`` a short-lived ``httpx.AsyncClient`` is opened per
    request. A caller-supplied client is reused and stays owned by the
    caller; once it is closed, posts raise ``TransportUnavailableError``.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, client: httpx.AsyncClient | None = None):
        self.timeout = timeout
        self._client = client

    async def post(self, url: str, headers: dict[str, str], body: bytes) -> TransportResponse:
        if self._client is not None:
            if self._client.is_closed:
                raise TransportUnavailableError("HTTP client is closed")
            response = await self._client.post(url, headers=headers, content=body, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, headers=headers, content=body)

        logger.debug(f"POST {url} -> {response.status_code}")
        return TransportResponse(status_code=response.status_code)
