"""Tests for the httpx-backed ApiClient."""

import asyncio
import json

import httpx
import pytest

from reg_notify_core.errors import RemoteApiError, TransportError
from reg_notify_core.models import OutboundRequest
from reg_notify_core.transport import ApiClient

URI = "https://notify.example.com/api/update-status"


def _send(handler, request=None):
    async def run():
        client = ApiClient(transport=httpx.MockTransport(handler))
        try:
            return await client.send(request or OutboundRequest(uri=URI, body={"sha1": "abc"}))
        finally:
            await client.aclose()

    return asyncio.run(run())


def test_posts_json_body_and_returns_decoded_response():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True})

    assert _send(handler) == {"ok": True}
    assert seen == {"method": "POST", "url": URI, "body": {"sha1": "abc"}}


def test_empty_response_body_returns_none():
    assert _send(lambda request: httpx.Response(204)) is None


def test_non_json_response_returned_as_text():
    assert _send(lambda request: httpx.Response(200, text="accepted")) == "accepted"


def test_error_status_with_message_raises_remote_api_error():
    handler = lambda request: httpx.Response(404, json={"message": "Installation not found"})  # noqa: E731

    with pytest.raises(RemoteApiError) as exc_info:
        _send(handler)
    assert exc_info.value.message == "Installation not found"
    assert exc_info.value.status_code == 404


def test_nested_error_message_is_used():
    handler = lambda request: httpx.Response(400, json={"error": {"message": "bad sha1"}})  # noqa: E731

    with pytest.raises(RemoteApiError, match="bad sha1"):
        _send(handler)


def test_error_status_without_json_falls_back_to_text():
    handler = lambda request: httpx.Response(502, text="Bad Gateway from proxy")  # noqa: E731

    with pytest.raises(RemoteApiError) as exc_info:
        _send(handler)
    assert exc_info.value.message == "Bad Gateway from proxy"
    assert exc_info.value.status_code == 502


def test_error_status_with_empty_body_uses_reason_phrase():
    with pytest.raises(RemoteApiError, match="500 Internal Server Error"):
        _send(lambda request: httpx.Response(500))


def test_connection_failure_raises_transport_error():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError, match="connection refused"):
        _send(handler)


def test_client_is_reused_until_closed():
    async def run():
        client = ApiClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
        first = await client._get_client()
        second = await client._get_client()
        await client.aclose()
        third = await client._get_client()
        await client.aclose()
        return first, second, third

    first, second, third = asyncio.run(run())
    assert first is second
    assert third is not first
