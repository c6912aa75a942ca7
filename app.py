"""FastAPI application factory."""

import random
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.handlers import (
    handle_balance,
    handle_block_number,
    handle_ens_resolve,
    handle_holders_historical,
    handle_holders_stats,
    handle_jupiter_price,
    handle_jupiter_quote,
    handle_jupiter_swap,
    handle_price,
    handle_time_machine,
    handle_yield_scan,
    handle_yields,
)
from core.config import Config, EnvSecretProvider, solana_rpc_url
from core.exceptions import ConfigurationError, GatewayError
from core.headers import HeaderBuilder
from core.protocols import RequestLogger, SecretProvider
from services.balance_service import BalanceService
from services.solana_rpc import SolanaRpc
from services.targets import Targets
from services.time_machine_service import TimeMachineService
from services.upstream import UpstreamClient


def create_app(
    config: Config,
    logger: RequestLogger,
    secrets: SecretProvider | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    `transport` replaces the network layer of the shared HTTP client and
    `rng` seeds the time machine's price simulation; both exist for tests.
    """
    secrets = secrets or EnvSecretProvider(config)
    header_builder = HeaderBuilder()
    targets = Targets.build(config, secrets, header_builder)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(max_connections=100, max_keepalive_connections=20)
        http_client = httpx.AsyncClient(
            timeout=config.limits.upstream_timeout,
            limits=limits,
            transport=transport,
        )
        upstream = UpstreamClient(http_client, logger, config.limits.upstream_timeout)
        rpc = SolanaRpc(upstream, solana_rpc_url(config), header_builder)
        app.state.upstream = upstream
        app.state.balances = BalanceService(rpc, logger)
        app.state.time_machine = TimeMachineService(upstream, targets.jupiter, logger, rng)
        try:
            yield
        finally:
            await http_client.aclose()

    app = FastAPI(title="DeFi Gateway", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.logger = logger
    app.state.targets = targets

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        if isinstance(exc, ConfigurationError):
            logger.log_error("Config", exc.status_code, exc.message)
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.log_error("Gateway", 500, str(exc))
        return JSONResponse(
            {"error": "Internal server error", "details": str(exc)},
            status_code=500,
        )

    app.add_api_route("/api/price", handle_price, methods=["GET"])
    app.add_api_route("/api/tools/yield-scanner", handle_yield_scan, methods=["GET"])
    app.add_api_route("/api/yields", handle_yields, methods=["GET"])
    app.add_api_route("/api/jupiter/swap", handle_jupiter_swap, methods=["POST"])
    app.add_api_route("/api/jupiter/quote", handle_jupiter_quote, methods=["GET"])
    app.add_api_route("/api/jupiter/price", handle_jupiter_price, methods=["GET"])
    app.add_api_route("/api/ens/resolve", handle_ens_resolve, methods=["GET"])
    app.add_api_route(
        "/api/chain/eth/block-number", handle_block_number, methods=["GET", "POST"]
    )
    app.add_api_route(
        "/api/moralis/solana/holders/{address}/historical",
        handle_holders_historical,
        methods=["GET"],
    )
    app.add_api_route(
        "/api/moralis/solana/holders/{address}/stats",
        handle_holders_stats,
        methods=["GET"],
    )
    app.add_api_route("/api/atlas/time-machine", handle_time_machine, methods=["POST"])
    app.add_api_route("/api/test/balance", handle_balance, methods=["GET"])

    return app
