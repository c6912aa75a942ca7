"""HTTP proxying utilities for upstream requests."""

from typing import Any

import httpx
from fastapi import Response

from core.exceptions import UpstreamError, UpstreamTransportError
from core.protocols import RequestLogger
from core.request_types import PreparedRequest

DEFAULT_CONTENT_TYPE = "application/json"


class UpstreamClient:
    """Issue prepared requests to third-party APIs and relay their responses."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        logger: RequestLogger,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._logger = logger
        self._timeout = timeout

    async def relay(
        self,
        prepared: PreparedRequest,
        headers: dict[str, str] | None = None,
    ) -> Response:
        """Pass a 2xx upstream response through unchanged.

        Status, content-type and body are copied verbatim; `headers` are added
        to the outgoing response (e.g. Cache-Control).
        """
        response = await self._send(prepared)
        self._raise_for_status(prepared, response)
        return Response(
            content=response.content,
            status_code=response.status_code,
            media_type=response.headers.get("content-type", DEFAULT_CONTENT_TYPE),
            headers=headers,
        )

    async def fetch_json(self, prepared: PreparedRequest) -> Any:
        """Return the parsed JSON body of a 2xx upstream response."""
        response = await self._send(prepared)
        self._raise_for_status(prepared, response)
        try:
            return response.json()
        except ValueError as e:
            self._logger.log_error(prepared.route_name, response.status_code, "Invalid JSON")
            raise UpstreamTransportError(
                prepared.route_name, f"Invalid JSON from upstream: {e}"
            ) from e

    async def _send(self, prepared: PreparedRequest) -> httpx.Response:
        """Execute the request, mapping transport failures to gateway errors."""
        self._logger.log_upstream(
            prepared.route_name,
            prepared.method,
            _scrub(prepared.url, prepared.redact),
            params=prepared.params,
            headers=prepared.headers,
        )
        try:
            return await self._client.request(
                prepared.method,
                prepared.url,
                params=prepared.params or None,
                headers=prepared.headers,
                json=prepared.body,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            message = _scrub(str(e) or "Upstream timeout", prepared.redact)
            self._logger.log_error(prepared.route_name, 500, message)
            raise UpstreamTransportError(prepared.route_name, message) from e
        except httpx.HTTPError as e:
            message = _scrub(str(e) or type(e).__name__, prepared.redact)
            self._logger.log_error(prepared.route_name, 500, message)
            raise UpstreamTransportError(prepared.route_name, message) from e

    def _raise_for_status(self, prepared: PreparedRequest, response: httpx.Response) -> None:
        if response.is_success:
            return
        self._logger.log_error(
            prepared.route_name,
            response.status_code,
            _scrub(response.text, prepared.redact),
        )
        raise UpstreamError(
            prepared.route_name,
            response.status_code,
            _error_details(response, prepared.redact),
        )


def _error_details(response: httpx.Response, redact: tuple[str, ...]) -> Any:
    """Best-effort upstream error body: JSON when parseable, text otherwise."""
    if not response.content:
        return response.reason_phrase or None
    try:
        return response.json()
    except ValueError:
        return _scrub(response.text, redact)


def _scrub(text: str, secrets: tuple[str, ...]) -> str:
    """Mask secret values embedded in URLs or messages."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text
