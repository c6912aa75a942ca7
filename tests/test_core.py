"""Tests for configuration, parameter normalization, logging and the upstream client."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from cli import uvicorn_log_level
from core.config import Config, EnvSecretProvider, load_config, solana_rpc_url
from core.exceptions import UpstreamError, UpstreamTransportError
from core.params import default_date_range, endpoint_path, passthrough_params
from core.request_types import PreparedRequest
from services.upstream import UpstreamClient
from tests.conftest import RecordingLogger
from ui import log_utils
from ui.dashboard import Dashboard


# Configuration


def test_load_config_creates_default_file(tmp_path):
    path = tmp_path / "gateway" / "config.json"

    config = load_config(path)

    assert config == Config()
    assert json.loads(path.read_text())["server"]["port"] == 3000


def test_load_config_reads_existing_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"server": {"port": 8123}, "secrets": {"MORALIS_API_KEY": "m"}}))

    config = load_config(path)

    assert config.server.port == 8123
    assert config.secrets == {"MORALIS_API_KEY": "m"}
    assert config.upstreams.coingecko_url == "https://api.coingecko.com/api/v3"


def test_load_config_backs_up_corrupted_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken")

    config = load_config(path)

    assert config == Config()
    assert (tmp_path / "config.json.bak").read_text() == "{broken"


def test_secret_provider_prefers_environment(monkeypatch):
    config = Config(secrets={"MORALIS_API_KEY": "from-file", "NOWNODES_API_KEY": "file-only"})
    provider = EnvSecretProvider(config)
    monkeypatch.setenv("MORALIS_API_KEY", "from-env")
    monkeypatch.delenv("NOWNODES_API_KEY", raising=False)
    monkeypatch.delenv("JUPITER_APP_ID", raising=False)

    assert provider.get("MORALIS_API_KEY") == "from-env"
    assert provider.get("NOWNODES_API_KEY") == "file-only"
    assert provider.get("JUPITER_APP_ID") is None


def test_secret_provider_reads_environment_per_call(monkeypatch):
    provider = EnvSecretProvider()
    monkeypatch.delenv("NOWNODES_API_KEY", raising=False)
    assert provider.get("NOWNODES_API_KEY") is None

    monkeypatch.setenv("NOWNODES_API_KEY", "late")
    assert provider.get("NOWNODES_API_KEY") == "late"


def test_solana_rpc_url_env_override(monkeypatch):
    monkeypatch.delenv("SOLANA_RPC_URL", raising=False)
    assert solana_rpc_url(Config()) == "https://api.mainnet-beta.solana.com"

    monkeypatch.setenv("SOLANA_RPC_URL", "https://rpc.example.org")
    assert solana_rpc_url(Config()) == "https://rpc.example.org"


@pytest.mark.parametrize(
    ("debug", "headless", "expected"),
    [(False, False, "warning"), (False, True, "info"), (True, False, "debug"), (True, True, "debug")],
)
def test_uvicorn_log_level_follows_debug_flag(debug, headless, expected):
    config = Config(server={"debug": debug})

    assert uvicorn_log_level(config, headless) == expected


# Parameters


def test_passthrough_params_drops_endpoint_and_fills_defaults():
    query = [("endpoint", "simple/price"), ("ids", "bitcoin"), ("vs_currencies", "")]

    params = passthrough_params(query, defaults={"ids": "ethereum", "vs_currencies": "usd"})

    assert params == {"ids": "bitcoin", "vs_currencies": "usd"}


def test_passthrough_params_last_value_wins():
    assert passthrough_params([("chain", "a"), ("chain", "b")]) == {"chain": "b"}


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, "pools"), ("", "pools"), ("/chart/abc/", "chart/abc"), ("poolsOld", "poolsOld")],
)
def test_endpoint_path(value, expected):
    assert endpoint_path(value, "pools") == expected


def test_default_date_range_covers_thirty_days():
    now = datetime(2025, 3, 31, 12, 0, tzinfo=UTC)

    assert default_date_range(30, now=now) == (
        "2025-03-01T12:00:00.000Z",
        "2025-03-31T12:00:00.000Z",
    )


# Logging


def test_upstream_log_redacts_key_headers(isolated_logs):
    path = log_utils.write_upstream_log(
        "Moralis",
        "GET",
        "https://solana-gateway.moralis.io/token/mainnet/holders/abc",
        headers={"X-API-Key": "supersecretvalue123", "accept": "application/json"},
    )

    entry = json.loads(path.read_text())
    assert path.parent == isolated_logs / "upstream" / "moralis"
    assert entry["headers"]["X-API-Key"] == "supers...e123"
    assert entry["headers"]["accept"] == "application/json"


def test_upstream_log_keeps_recent_files(isolated_logs):
    for _ in range(25):
        log_utils.write_upstream_log("Solana RPC", "POST", "https://rpc")

    folder = isolated_logs / "upstream" / "solana-rpc"
    assert len(list(folder.glob("*.json"))) == 21


def test_file_logger_writes_cli_log(isolated_logs):
    logger = log_utils.FileRequestLogger()

    logger.log_upstream("ENS", "GET", "https://api.ensideas.com/ens/resolve/x")
    logger.log_error("ENS", 404, "not found")

    lines = (isolated_logs / "gateway.log").read_text().splitlines()
    assert "UPSTREAM: GET https://api.ensideas.com/ens/resolve/x route=ENS" in lines[0]
    assert "ERROR: not found route=ENS status=404" in lines[1]


def test_clear_logs_removes_files(isolated_logs):
    log_utils.write_cli_log("INFO", "hello")

    log_utils.clear_logs()

    assert not any(p.is_file() for p in isolated_logs.rglob("*"))


# Upstream client


def _prepared(**overrides):
    fields = {
        "route_name": "Test",
        "method": "GET",
        "url": "https://upstream.test/data",
        "headers": {"Content-Type": "application/json"},
    }
    fields.update(overrides)
    return PreparedRequest(**fields)


@pytest.mark.asyncio
async def test_fetch_json_rejects_non_json_body():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    async with httpx.AsyncClient(transport=transport) as http_client:
        upstream = UpstreamClient(http_client, RecordingLogger())

        with pytest.raises(UpstreamTransportError) as exc_info:
            await upstream.fetch_json(_prepared())

    assert exc_info.value.status_code == 500
    assert "Invalid JSON" in exc_info.value.details


@pytest.mark.asyncio
async def test_fetch_json_raises_upstream_error_with_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(418, json={"teapot": True}))
    async with httpx.AsyncClient(transport=transport) as http_client:
        upstream = UpstreamClient(http_client, RecordingLogger())

        with pytest.raises(UpstreamError) as exc_info:
            await upstream.fetch_json(_prepared())

    assert exc_info.value.status_code == 418
    assert exc_info.value.to_payload() == {
        "error": "Test request failed",
        "status": 418,
        "details": {"teapot": True},
    }


@pytest.mark.asyncio
async def test_transport_error_masks_redacted_values():
    def refuse(request):
        raise httpx.ConnectError(f"failed to connect to {request.url}")

    logger = RecordingLogger()
    async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as http_client:
        upstream = UpstreamClient(http_client, logger)

        with pytest.raises(UpstreamTransportError) as exc_info:
            await upstream.relay(
                _prepared(url="https://upstream.test/s3cr3t", redact=("s3cr3t",))
            )

    assert "s3cr3t" not in exc_info.value.details
    assert logger.upstream_calls[0]["url"] == "https://upstream.test/***"
    assert "s3cr3t" not in logger.errors[0][2]


# Dashboard


def test_dashboard_counts_calls_per_upstream(isolated_logs):
    dashboard = Dashboard(Config())

    dashboard.log_upstream("CoinGecko", "GET", "https://api.coingecko.com/api/v3/simple/price")
    dashboard.log_upstream("CoinGecko", "GET", "https://api.coingecko.com/api/v3/coins/list")
    dashboard.log_upstream("Jupiter", "POST", "https://quote-api.jup.ag/v6/swap")
    dashboard.log_error("Jupiter", 422, "Invalid quote")

    assert dashboard._request_count == {"CoinGecko": 2, "Jupiter": 1}
    assert dashboard._errors == ["Jupiter 422: Invalid quote"]
    assert dashboard._build_layout() is not None
    assert (isolated_logs / "gateway.log").exists()
