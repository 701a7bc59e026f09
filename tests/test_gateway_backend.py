"""Tests for the chat completion backend."""

import json

import httpx
import pytest

from helpers import Recorder
from sourcebook.backends.gateway import GatewayBackend
from sourcebook.errors import UpstreamModelError

API_URL = "https://gateway.test/v1/chat/completions"
MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]


def _backend(respond) -> tuple[GatewayBackend, Recorder]:
    recorder = Recorder({API_URL: respond})
    backend = GatewayBackend(
        api_key="secret", model="test-model", api_url=API_URL, transport=recorder.transport
    )
    return backend, recorder


@pytest.mark.asyncio
async def test_returns_first_choice_content():
    backend, recorder = _backend(
        lambda r: httpx.Response(200, json={"choices": [{"message": {"content": "Answer"}}]})
    )

    assert await backend.complete(MESSAGES) == "Answer"

    request = recorder.requests[0]
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"model": "test-model", "messages": MESSAGES}


@pytest.mark.asyncio
async def test_non_success_status_is_fatal_without_retry():
    backend, recorder = _backend(lambda r: httpx.Response(429, text="rate limited"))

    with pytest.raises(UpstreamModelError, match="AI API error: 429"):
        await backend.complete(MESSAGES)
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [{}, {"choices": []}, {"choices": [{"message": {}}]}, {"choices": [{"message": {"content": None}}]}],
)
async def test_malformed_response_is_fatal(payload):
    backend, _ = _backend(lambda r: httpx.Response(200, json=payload))

    with pytest.raises(UpstreamModelError, match="malformed"):
        await backend.complete(MESSAGES)


@pytest.mark.asyncio
async def test_network_error_is_fatal():
    def _boom(request):
        raise httpx.ConnectError("connection refused")

    backend, _ = _backend(_boom)

    with pytest.raises(UpstreamModelError):
        await backend.complete(MESSAGES)


@pytest.mark.asyncio
async def test_missing_api_key_is_reported():
    backend = GatewayBackend(api_key="", api_url=API_URL)

    with pytest.raises(UpstreamModelError, match="not configured"):
        await backend.complete(MESSAGES)
