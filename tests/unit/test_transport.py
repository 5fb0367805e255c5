"""
Unit tests for HttpxTransport.

Requests are served by httpx.MockTransport, so no sockets are opened.
"""

import json

import httpx
import pytest

from observer_sdk import HttpxTransport, TransportResponse, TransportUnavailableError
from observer_sdk.transport import build_headers

URL = "https://observer.test/observer/logs/ingest"


def recording_handler(seen: list, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, json={"accepted": True})

    return handler


class TestTransportResponse:
    @pytest.mark.parametrize("status_code", [200, 201, 202, 204, 299])
    def test_2xx_is_ok(self, status_code):
        assert TransportResponse(status_code).ok is True

    @pytest.mark.parametrize("status_code", [199, 300, 400, 401, 422, 500, 503])
    def test_other_statuses_are_not_ok(self, status_code):
        assert TransportResponse(status_code).ok is False


class TestBuildHeaders:
    def test_api_key_and_json(self):
        assert build_headers("secret") == {
            "Content-Type": "application/json",
            "Authorization": "ApiKey secret",
        }


class TestHttpxTransport:
    """Tests for HttpxTransport.post()."""

    @pytest.mark.asyncio
    async def test_posts_with_injected_client(self):
        """An injected AsyncClient is used for the request."""
        seen = []
        async with httpx.AsyncClient(transport=httpx.MockTransport(recording_handler(seen))) as client:
            transport = HttpxTransport(client=client)
            body = json.dumps({"appName": "a", "logs": []}).encode()

            response = await transport.post(URL, build_headers("k"), body)

        assert response == TransportResponse(200)
        (request,) = seen
        assert request.method == "POST"
        assert str(request.url) == URL
        assert request.headers["Authorization"] == "ApiKey k"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"appName": "a", "logs": []}

    @pytest.mark.asyncio
    async def test_error_status_returned_not_raised(self):
        """Non-2xx statuses come back as a response; the client decides."""
        seen = []
        async with httpx.AsyncClient(transport=httpx.MockTransport(recording_handler(seen, 401))) as client:
            response = await HttpxTransport(client=client).post(URL, {}, b"{}")

        assert response.status_code == 401
        assert response.ok is False

    @pytest.mark.asyncio
    async def test_closed_client_is_unavailable(self):
        """A closed injected client surfaces as TransportUnavailableError."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler([])))
        await client.aclose()

        with pytest.raises(TransportUnavailableError):
            await HttpxTransport(client=client).post(URL, {}, b"{}")

    @pytest.mark.asyncio
    async def test_connection_errors_propagate(self):
        """Network errors are raised for the client to requeue and report."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.ConnectError):
                await HttpxTransport(client=client).post(URL, {}, b"{}")

    @pytest.mark.asyncio
    async def test_owns_client_per_request_without_injection(self, mocker):
        """Without a client, a short-lived AsyncClient with the timeout is opened."""
        seen = []
        real_client = httpx.AsyncClient
        factory = mocker.patch(
            "observer_sdk.transport.httpx.AsyncClient",
            side_effect=lambda **kwargs: real_client(
                transport=httpx.MockTransport(recording_handler(seen)), **kwargs
            ),
        )

        response = await HttpxTransport(timeout=4.0).post(URL, build_headers("k"), b"{}")

        assert response.ok
        factory.assert_called_once_with(timeout=4.0)
        assert len(seen) == 1
