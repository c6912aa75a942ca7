"""FastAPI route handlers."""

import json
from json import JSONDecodeError
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from core.exceptions import GatewayError, InvalidRequest, RequestTooLarge
from core.validation import require_params, validate_swap_body, validate_time_machine_body
from core.yields import extract_pools, rank_pools
from ui.log_utils import write_incoming_log

HISTORICAL_CACHE_CONTROL = "private, max-age=30"
STATS_CACHE_CONTROL = "private, max-age=15"


async def _parse_json_body(request: Request) -> Any:
    """Parse request body as JSON, raising a gateway error on bad input."""
    raw_body = await request.body()
    if len(raw_body) > request.app.state.config.limits.max_body_size:
        raise RequestTooLarge("Request body too large")

    text_body = raw_body.decode("utf-8", errors="replace")
    try:
        body = json.loads(text_body)
    except (JSONDecodeError, ValueError) as e:
        write_incoming_log(request.method, request.url.path, dict(request.headers), text_body)
        raise InvalidRequest(f"Invalid JSON: {e}") from e

    write_incoming_log(request.method, request.url.path, dict(request.headers), body)
    return body


async def handle_price(request: Request) -> Response:
    """Proxy CoinGecko, defaulting to simple/price for ethereum in usd."""
    query = request.query_params
    state = request.app.state
    prepared = state.targets.coingecko.prepare_price(query.get("endpoint"), query.multi_items())
    return await state.upstream.relay(prepared)


async def handle_yield_scan(request: Request) -> Response:
    """Proxy the DefiLlama Yields API; `endpoint` selects the sub-path."""
    query = request.query_params
    state = request.app.state
    prepared = state.targets.defillama.prepare_scan(query.get("endpoint"), query.multi_items())
    return await state.upstream.relay(prepared)


async def handle_yields(request: Request) -> Response:
    """Top pools for an asset/chain pair, ranked by APY."""
    asset = request.query_params.get("asset", "")
    chain = request.query_params.get("chain", "")
    state = request.app.state

    payload = await state.upstream.fetch_json(state.targets.defillama.prepare_pools())
    top = rank_pools(extract_pools(payload), asset, chain)
    return JSONResponse({"data": top})


async def handle_jupiter_swap(request: Request) -> Response:
    body = validate_swap_body(await _parse_json_body(request))
    state = request.app.state
    return await state.upstream.relay(state.targets.jupiter.prepare_swap(body))


async def handle_jupiter_quote(request: Request) -> Response:
    query = request.query_params
    require_params(dict(query), "inputMint", "outputMint", "amount")
    state = request.app.state
    prepared = state.targets.jupiter.prepare_quote(
        query["inputMint"],
        query["outputMint"],
        query["amount"],
        query.get("slippageBps"),
    )
    return await state.upstream.relay(prepared)


async def handle_jupiter_price(request: Request) -> Response:
    query = request.query_params
    ids = query.get("ids")
    mints = query.get("mints")
    if not ids and not mints:
        raise InvalidRequest("Missing ?ids or ?mints")
    state = request.app.state
    prepared = state.targets.jupiter.prepare_price(ids, mints, query.get("vsToken"))
    return await state.upstream.relay(prepared)


async def handle_ens_resolve(request: Request) -> Response:
    name = request.query_params.get("name")
    require_params({"name": name}, "name")
    state = request.app.state
    data = await state.upstream.fetch_json(state.targets.ens.prepare_resolve(name))
    return JSONResponse({"data": data})


async def handle_block_number(request: Request) -> Response:
    """Latest Ethereum block number via NowNodes (GET and POST behave the same)."""
    state = request.app.state
    return await state.upstream.relay(state.targets.nownodes.prepare_block_number())


async def handle_holders_historical(request: Request, address: str) -> Response:
    address = _require_address(address)
    state = request.app.state
    prepared = state.targets.moralis.prepare_historical(address, dict(request.query_params))
    return await state.upstream.relay(
        prepared, headers={"Cache-Control": HISTORICAL_CACHE_CONTROL}
    )


async def handle_holders_stats(request: Request, address: str) -> Response:
    address = _require_address(address)
    state = request.app.state
    prepared = state.targets.moralis.prepare_stats(address)
    return await state.upstream.relay(prepared, headers={"Cache-Control": STATS_CACHE_CONTROL})


async def handle_time_machine(request: Request) -> Response:
    """Historical what-if analysis for stake/swap/lp strategies."""
    strategy, amount, days_ago = validate_time_machine_body(await _parse_json_body(request))

    result = await request.app.state.time_machine.run(strategy, amount, days_ago)
    if result is None:
        return JSONResponse({"error": "Analysis failed. Please try again"}, status_code=500)
    return JSONResponse({"success": True, "data": result.to_dict()})


async def handle_balance(request: Request) -> Response:
    """Check RPC health, then aggregate SOL/USDC/USDT balances for a wallet."""
    wallet = request.query_params.get("wallet")
    if not wallet:
        raise InvalidRequest(
            "wallet parameter required",
            usage="/api/test/balance?wallet=YOUR_WALLET_ADDRESS",
        )

    balances = request.app.state.balances
    health = await balances.check_health()
    if not health.healthy:
        return JSONResponse(
            {"success": False, "error": "RPC endpoint unhealthy", "rpcError": health.error},
            status_code=503,
        )

    try:
        snapshot = await balances.snapshot(wallet, health)
    except GatewayError as e:
        request.app.state.logger.log_error("Balance", 500, e.message)
        return JSONResponse(
            {"success": False, "error": e.message or "Failed to check balance", "wallet": wallet},
            status_code=500,
        )
    except Exception as e:
        request.app.state.logger.log_error("Balance", 500, str(e))
        return JSONResponse(
            {"success": False, "error": str(e) or "Failed to check balance", "wallet": wallet},
            status_code=500,
        )
    return JSONResponse(snapshot)


def _require_address(address: str) -> str:
    address = address.strip()
    if not address:
        raise InvalidRequest("Missing token address")
    return address
