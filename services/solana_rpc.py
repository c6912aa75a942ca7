"""Solana JSON-RPC helper: balances and node health."""

import asyncio
from dataclasses import dataclass
from itertools import count
from typing import Any

from core.exceptions import GatewayError, RpcError
from core.headers import HeaderBuilder
from core.request_types import PreparedRequest
from services.upstream import UpstreamClient

LAMPORTS_PER_SOL = 1_000_000_000

TOKENS = {
    "SOL": "So11111111111111111111111111111111111111112",
    "USDC": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    "USDT": "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
}


@dataclass(frozen=True)
class RpcHealth:
    healthy: bool
    slot: int | None = None
    version: str | None = None
    error: str | None = None


class SolanaRpc:
    """Thin JSON-RPC client over the shared upstream client."""

    route_name = "Solana RPC"

    def __init__(
        self,
        upstream: UpstreamClient,
        rpc_url: str,
        header_builder: HeaderBuilder,
    ) -> None:
        self._upstream = upstream
        self._rpc_url = rpc_url
        self._headers = header_builder
        self._ids = count(1)

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Invoke `method` and return its `result`."""
        prepared = PreparedRequest(
            self.route_name,
            "POST",
            self._rpc_url,
            self._headers.build_json_headers(),
            body={
                "jsonrpc": "2.0",
                "id": next(self._ids),
                "method": method,
                "params": params or [],
            },
        )
        payload = await self._upstream.fetch_json(prepared)
        if not isinstance(payload, dict):
            raise RpcError(self.route_name, method, "Malformed JSON-RPC response")
        if payload.get("error") is not None:
            raise RpcError(self.route_name, method, payload["error"])
        return payload.get("result")

    async def get_sol_balance(self, wallet: str) -> float:
        """SOL balance of `wallet`, in SOL."""
        result = await self.call("getBalance", [wallet])
        lamports = result.get("value") if isinstance(result, dict) else result
        if not isinstance(lamports, int):
            raise RpcError(self.route_name, "getBalance", "Missing balance value")
        return lamports / LAMPORTS_PER_SOL

    async def get_token_balance(self, wallet: str, mint: str) -> float:
        """Sum of `wallet`'s token accounts for `mint`, in UI units."""
        result = await self.call(
            "getTokenAccountsByOwner",
            [wallet, {"mint": mint}, {"encoding": "jsonParsed"}],
        )
        accounts = result.get("value") if isinstance(result, dict) else None
        if not isinstance(accounts, list):
            return 0.0
        return sum(_ui_amount(account) for account in accounts)

    async def check_health(self) -> RpcHealth:
        """Probe the node with getSlot and getVersion in parallel."""
        try:
            slot, version = await asyncio.gather(
                self.call("getSlot"),
                self.call("getVersion"),
            )
        except GatewayError as e:
            return RpcHealth(healthy=False, error=e.message)
        core_version = version.get("solana-core") if isinstance(version, dict) else None
        return RpcHealth(healthy=True, slot=slot, version=core_version)


def _ui_amount(account: Any) -> float:
    try:
        token_amount = account["account"]["data"]["parsed"]["info"]["tokenAmount"]
    except (KeyError, TypeError):
        return 0.0
    if not isinstance(token_amount, dict):
        return 0.0
    ui_amount = token_amount.get("uiAmount")
    if isinstance(ui_amount, (int, float)):
        return float(ui_amount)
    try:
        return int(token_amount["amount"]) / 10 ** int(token_amount.get("decimals", 0))
    except (KeyError, TypeError, ValueError):
        return 0.0
