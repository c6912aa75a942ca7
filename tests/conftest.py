"""Shared fixtures: an in-memory upstream and a gateway wired to it."""

import random
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config

NOWNODES_KEY = "nownodes-secret-key-123"
MORALIS_KEY = "moralis-secret-key-456"


class RecordingLogger:
    """RequestLogger that keeps every call in memory."""

    def __init__(self) -> None:
        self.upstream_calls: list[dict[str, Any]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_upstream(self, route, method, url, *, params=None, headers=None) -> None:
        self.upstream_calls.append(
            {"route": route, "method": method, "url": url, "params": params, "headers": headers}
        )

    def log_error(self, route: str, status: int, message: str) -> None:
        self.errors.append((route, status, message))


class StaticSecrets:
    """SecretProvider backed by a mutable dict."""

    def __init__(self, values: dict[str, str]) -> None:
        self.values = values

    def get(self, name: str) -> str | None:
        return self.values.get(name)


class FixedRandom(random.Random):
    """Random source that always returns the same draw."""

    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


class FakeUpstream:
    """httpx.MockTransport handler keyed by URL without query string."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        url: str,
        status: int = 200,
        *,
        json: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
        error: Exception | None = None,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if error is not None:
                raise error
            if handler is not None:
                return handler(request)
            if text is not None:
                return httpx.Response(status, text=text, headers=headers)
            return httpx.Response(status, json=json, headers=headers)

        self.routes[url] = respond

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        respond = self.routes.get(key)
        if respond is None:
            return httpx.Response(404, json={"error": f"no fake route for {key}"})
        return respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep file logs out of the working tree."""
    monkeypatch.setattr("ui.log_utils.LOG_ROOT", tmp_path / "logs")
    monkeypatch.setattr("ui.log_utils.CLI_LOG_FILE", tmp_path / "logs" / "gateway.log")
    return tmp_path / "logs"


@pytest.fixture
def config(monkeypatch) -> Config:
    monkeypatch.delenv("SOLANA_RPC_URL", raising=False)
    return Config()


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def secrets() -> StaticSecrets:
    return StaticSecrets({"NOWNODES_API_KEY": NOWNODES_KEY, "MORALIS_API_KEY": MORALIS_KEY})


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def rng() -> FixedRandom:
    # 0.25 makes the simulated historical price equal to the current price
    return FixedRandom(0.25)


@pytest.fixture
def client(config, logger, secrets, fake_upstream, rng):
    app = create_app(
        config,
        logger,
        secrets,
        transport=httpx.MockTransport(fake_upstream),
        rng=rng,
    )
    with TestClient(app) as test_client:
        yield test_client
