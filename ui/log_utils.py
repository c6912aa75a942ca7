"""Shared logging utilities."""

import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "gateway.log"


def write_incoming_log(
    method: str,
    path: str,
    headers: dict[str, str],
    body: Any,
    *,
    log_root: Path | None = None,
) -> Path:
    """Write a single incoming request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "path": path,
        "headers": _redact_headers(headers),
        "body": body,
    }
    return _write_json((log_root or LOG_ROOT) / "incoming", payload)


def write_upstream_log(
    route: str,
    method: str,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    log_root: Path | None = None,
) -> Path:
    """Write a single upstream request log entry, one folder per upstream."""
    folder = (log_root or LOG_ROOT) / "upstream" / _slug(route)
    _cleanup_folder(folder, keep=20)

    payload = {
        "timestamp": _utc_now(),
        "target": route,
        "method": method,
        "url": url,
        "params": params or {},
        "headers": _redact_headers(headers or {}),
    }
    return _write_json(folder, payload)


def _cleanup_folder(folder: Path, keep: int) -> int:
    """Delete all but the `keep` most recent log files in a folder."""
    if not folder.exists():
        return 0

    files = sorted(folder.glob("*.json"))
    if len(files) <= keep:
        return 0

    deleted = 0
    for old_file in files[: len(files) - keep]:
        try:
            old_file.unlink()
            deleted += 1
        except OSError:
            pass
    return deleted


def write_cli_log(
    level: str,
    message: str,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    CLI_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with CLI_LOG_FILE.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path | None = None) -> None:
    """Remove log files left over from a previous run."""
    root = log_root or LOG_ROOT
    if not root.exists():
        return
    for file_path in root.rglob("*"):
        if file_path.is_file():
            file_path.unlink()


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _slug(route: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", route.lower()).strip("-") or "unknown"


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        if "key" in key.lower() or "authorization" in key.lower():
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


class FileRequestLogger:
    """Headless request logger: file logs only, no dashboard."""

    def log_upstream(
        self,
        route: str,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        write_upstream_log(route, method, url, params=params, headers=headers)
        write_cli_log("UPSTREAM", f"{method} {url}", route=route)

    def log_error(self, route: str, status: int, message: str) -> None:
        write_cli_log("ERROR", message[:200], route=route, status=status)
