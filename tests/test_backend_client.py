"""
Tests for the HTTP analysis backend using httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from guardaio.backend_client import HttpAnalysisBackend, build_payload, encode_for_upload
from guardaio.core.exceptions import AnalysisBackendError

from conftest import SAFE_RESPONSE, make_file

FUNCTIONS_URL = "https://example.supabase.co/functions/v1"


def _call(handler, file_base64="aGk=", api_key="anon-key"):
    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            backend = HttpAnalysisBackend(FUNCTIONS_URL, api_key, client=client)
            return await backend.analyze("photo.jpg", "image/jpeg", file_base64, 40)

    return asyncio.run(scenario())


def test_request_shape_and_success():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["apikey"] = request.headers.get("apikey")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=SAFE_RESPONSE)

    assert _call(handler) == SAFE_RESPONSE
    assert seen["url"] == f"{FUNCTIONS_URL}/analyze-media"
    assert seen["auth"] == "Bearer anon-key"
    assert seen["apikey"] == "anon-key"
    assert seen["body"] == {
        "fileName": "photo.jpg",
        "fileType": "image/jpeg",
        "fileBase64": "aGk=",
        "sensitivity": 40,
    }


def test_payload_omits_base64_for_non_images():
    body = build_payload("clip.mp4", "video/mp4", None, 50)
    assert "fileBase64" not in body
    assert encode_for_upload(make_file("clip.mp4", "video/mp4")) is None


def test_encode_image():
    source = make_file("a.png", "image/png", size=3)
    assert base64.b64decode(encode_for_upload(source)) == source.data


@pytest.mark.parametrize(
    "status, expected",
    [
        (429, "Rate limit exceeded. Please try again later."),
        (402, "AI usage limit reached. Please add credits to continue."),
        (500, "Analysis service error: 500"),
    ],
)
def test_http_errors_raise_backend_error(status, expected):
    def handler(request):
        return httpx.Response(status, text="")

    with pytest.raises(AnalysisBackendError) as exc_info:
        _call(handler)
    assert str(exc_info.value) == expected
    assert exc_info.value.status_code == status


def test_error_body_message_preferred():
    def handler(request):
        return httpx.Response(400, json={"error": "Unsupported file type"})

    with pytest.raises(AnalysisBackendError, match="Unsupported file type"):
        _call(handler)


def test_transport_error_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AnalysisBackendError, match="Could not reach"):
        _call(handler)


def test_non_json_success_returns_none():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    assert _call(handler) is None


def test_no_auth_headers_without_key():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=SAFE_RESPONSE)

    _call(handler, api_key="")
    assert seen["auth"] is None


def test_empty_functions_url_rejected():
    with pytest.raises(ValueError):
        HttpAnalysisBackend("  ")


def test_from_settings(settings):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers.get("apikey")
        return httpx.Response(200, json=SAFE_RESPONSE)

    async def scenario():
        backend = HttpAnalysisBackend.from_settings(settings)
        backend._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        try:
            return await backend.analyze("a.jpg", "image/jpeg", None, 50)
        finally:
            await backend._client.aclose()

    assert asyncio.run(scenario()) == SAFE_RESPONSE
    assert seen["url"] == "https://proj.supabase.co/functions/v1/analyze-media"
    assert seen["apikey"] == "anon-key"
