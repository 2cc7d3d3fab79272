"""
Analysis backend client.

The backend is an opaque async function: (file name, type, optional base64,
sensitivity) -> raw result or failure. HttpAnalysisBackend calls the
analyze-media edge function over HTTP with httpx; anything it returns must go
through analysis_engine.normalizer before use. No retries: a failed call is
reported and the user resubmits.
"""

from __future__ import annotations

import base64
from typing import Any, Protocol

import httpx

from guardaio.analysis_engine.models import SourceFile
from guardaio.core.exceptions import AnalysisBackendError
from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)

ANALYZE_MEDIA_FUNCTION = "analyze-media"
DEFAULT_TIMEOUT_SEC = 60.0

_STATUS_MESSAGES = {
    402: "AI usage limit reached. Please add credits to continue.",
    429: "Rate limit exceeded. Please try again later.",
}


class AnalysisBackend(Protocol):
    """Anything that can analyze a file asynchronously."""

    async def analyze(
        self,
        file_name: str,
        file_type: str,
        file_base64: str | None,
        sensitivity: int,
    ) -> Any: ...


def encode_for_upload(source: SourceFile) -> str | None:
    """Base64 text of the file for image types; None for video/audio/other."""
    if not source.is_image:
        return None
    return base64.b64encode(source.data).decode("ascii")


def build_payload(
    file_name: str,
    file_type: str,
    file_base64: str | None,
    sensitivity: int,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "fileName": file_name,
        "fileType": file_type,
        "sensitivity": sensitivity,
    }
    if file_base64 is not None:
        body["fileBase64"] = file_base64
    return body


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return _STATUS_MESSAGES.get(response.status_code, f"Analysis service error: {response.status_code}")


class HttpAnalysisBackend:
    """
    Calls <functions_url>/analyze-media.

    Args:
        functions_url: Edge functions base URL (e.g. https://x.supabase.co/functions/v1).
        api_key: Sent as Bearer token and apikey header when set.
        timeout_sec: Per-request timeout.
        client: Optional shared httpx.AsyncClient (tests pass one with MockTransport).
    """

    def __init__(
        self,
        functions_url: str,
        api_key: str = "",
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not functions_url.strip():
            raise ValueError("functions_url must be non-empty")
        self._url = f"{functions_url.rstrip('/')}/{ANALYZE_MEDIA_FUNCTION}"
        self._api_key = api_key.strip()
        self._timeout = timeout_sec
        self._client = client

    @classmethod
    def from_settings(cls, settings: Any) -> "HttpAnalysisBackend":
        return cls(settings.functions_url, settings.api_key, timeout_sec=settings.request_timeout_sec)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
            headers["apikey"] = self._api_key
        return headers

    async def analyze(
        self,
        file_name: str,
        file_type: str,
        file_base64: str | None,
        sensitivity: int,
    ) -> Any:
        body = build_payload(file_name, file_type, file_base64, sensitivity)
        logger.info(
            "backend_analyze_request",
            file_name=file_name,
            file_type=file_type,
            has_payload=file_base64 is not None,
            sensitivity=sensitivity,
        )
        try:
            if self._client is not None:
                response = await self._client.post(self._url, json=body, headers=self._headers(), timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("backend_analyze_transport_error", file_name=file_name, error=str(e))
            raise AnalysisBackendError(f"Could not reach the analysis service: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("backend_analyze_http_error", status_code=response.status_code, error=message)
            raise AnalysisBackendError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError:
            # Malformed body: the normalizer turns None into a default result.
            logger.warning("backend_analyze_malformed_body", file_name=file_name, body=response.text[:200])
            return None
