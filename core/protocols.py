"""Shared protocol definitions."""

from typing import Any, Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_upstream(
        self,
        route: str,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...


class SecretProvider(Protocol):
    """Protocol for resolving server-side API keys."""

    def get(self, name: str) -> str | None: ...
