"""Shared request data types."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PreparedRequest:
    """Prepared data for an upstream request.

    `redact` lists secret values that must be masked wherever the URL or an
    error message is logged or returned.
    """

    route_name: str
    method: str
    url: str
    headers: dict[str, str]
    params: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] | None = None
    redact: tuple[str, ...] = ()
