"""Query parameter normalization for upstream requests."""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta

CONTROL_PARAMS = frozenset({"endpoint"})


def passthrough_params(
    query: Iterable[tuple[str, str]],
    *,
    exclude: Iterable[str] = CONTROL_PARAMS,
    defaults: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Copy inbound query params, dropping control params and filling defaults.

    Repeated keys keep the last value. A default is injected when the key is
    absent or empty.
    """
    excluded = set(exclude)
    params: dict[str, str] = {}
    for key, value in query:
        if key in excluded:
            continue
        params[key] = value

    for key, value in (defaults or {}).items():
        if not params.get(key):
            params[key] = value
    return params


def endpoint_path(value: str | None, default: str) -> str:
    """Normalize a client-selected sub-endpoint into a relative path."""
    path = (value or "").strip().strip("/")
    return path or default


def iso_timestamp(moment: datetime) -> str:
    """Format a datetime the way upstream date filters expect it."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def default_date_range(days: int = 30, *, now: datetime | None = None) -> tuple[str, str]:
    """Return (fromDate, toDate) covering the last `days` days."""
    end = now or datetime.now(UTC)
    start = end - timedelta(days=days)
    return iso_timestamp(start), iso_timestamp(end)
