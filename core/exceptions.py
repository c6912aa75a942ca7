"""Custom exception hierarchy for the DeFi gateway."""

from typing import Any


class GatewayError(Exception):
    """Base exception for all gateway errors.

    Attributes:
        message: Error message returned to the caller
        status_code: HTTP status code of the error response
    """

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message}


class InvalidRequest(GatewayError):
    """Raised when a required parameter or body field is missing or invalid.

    Attributes:
        extra: Additional fields merged into the error payload (e.g. usage hints)
    """

    status_code = 400

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


class RequestTooLarge(GatewayError):
    """Request body exceeds size limit."""

    status_code = 413


class ConfigurationError(GatewayError):
    """Raised when a required server-side secret is not configured."""

    def __init__(self, key: str) -> None:
        super().__init__(f"{key} not configured")
        self.key = key


class UpstreamError(GatewayError):
    """Raised when an upstream provider returns a non-2xx response.

    Attributes:
        status_code: HTTP status code from upstream, relayed to the caller
        provider: Upstream provider name (e.g., 'CoinGecko', 'Moralis')
        details: Upstream error body, parsed as JSON when possible
    """

    def __init__(
        self,
        provider: str,
        status_code: int,
        details: Any = None,
    ) -> None:
        super().__init__(f"{provider} request failed")
        self.provider = provider
        self.status_code = status_code
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "status": self.status_code, "details": self.details}


class UpstreamTransportError(GatewayError):
    """Raised when an upstream call fails before a response is received."""

    def __init__(self, provider: str, details: str) -> None:
        super().__init__(f"{provider} proxy error")
        self.provider = provider
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


class RpcError(GatewayError):
    """Raised when a JSON-RPC node answers with an `error` object."""

    status_code = 502

    def __init__(self, provider: str, method: str, error: Any) -> None:
        message = error.get("message") if isinstance(error, dict) else None
        super().__init__(f"{provider} {method} failed: {message or error}")
        self.provider = provider
        self.method = method
        self.error = error
