"""Async HTTP client for the notification service.

Failures are translated into RemoteApiError / TransportError here so callers
never have to look inside an httpx exception.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from reg_notify_core.errors import RemoteApiError, TransportError
from reg_notify_core.models import OutboundRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _error_message(response: httpx.Response) -> str:
    """Pull the service's error message out of a failed response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message")
        if not message and isinstance(payload.get("error"), dict):
            message = payload["error"].get("message")
        if message:
            return str(message)
    return response.text.strip() or f"{response.status_code} {response.reason_phrase}"


class ApiClient:
    """Sends OutboundRequests with a lazily created httpx.AsyncClient."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, request: OutboundRequest) -> Any:
        """Send one request and return the decoded body.

        Raises RemoteApiError for an error status and TransportError when no
        response arrived at all.
        """
        client = await self._get_client()
        try:
            response = await client.request(request.method, request.uri, json=request.body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteApiError(_error_message(e.response), status_code=e.response.status_code) from e
        except httpx.TransportError as e:
            raise TransportError(f"{request.method} {request.uri} failed: {e}") from e

        if not request.expect_json:
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug("Non-JSON response from %s: %s", request.uri, response.text[:200])
            return response.text
