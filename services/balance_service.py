"""Wallet balance aggregation over the Solana RPC helper."""

import asyncio
from datetime import UTC, datetime
from typing import Any

from core.exceptions import GatewayError
from core.protocols import RequestLogger
from services.solana_rpc import TOKENS, RpcHealth, SolanaRpc

DEFAULTED_TOKENS = ("USDC", "USDT")


class BalanceService:
    """Collect SOL, USDC and USDT balances for a wallet."""

    def __init__(self, rpc: SolanaRpc, logger: RequestLogger) -> None:
        self._rpc = rpc
        self._logger = logger

    async def check_health(self) -> RpcHealth:
        return await self._rpc.check_health()

    async def collect(self, wallet: str) -> dict[str, dict[str, Any]]:
        """Fetch all balances concurrently.

        Token balances fall back to 0 on failure; the SOL balance does not,
        so its error propagates to the caller.
        """
        sol, *tokens = await asyncio.gather(
            self._rpc.get_sol_balance(wallet),
            *(self._token_balance_or_zero(wallet, symbol) for symbol in DEFAULTED_TOKENS),
        )
        amounts = {"SOL": sol, **dict(zip(DEFAULTED_TOKENS, tokens))}
        return {
            symbol: {"amount": amount, "mint": TOKENS[symbol], "symbol": symbol}
            for symbol, amount in amounts.items()
        }

    async def snapshot(self, wallet: str, health: RpcHealth) -> dict[str, Any]:
        balances = await self.collect(wallet)
        return {
            "success": True,
            "wallet": wallet,
            "rpc": {"healthy": True, "slot": health.slot, "version": health.version},
            "balances": balances,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    async def _token_balance_or_zero(self, wallet: str, symbol: str) -> float:
        try:
            return await self._rpc.get_token_balance(wallet, TOKENS[symbol])
        except GatewayError as e:
            self._logger.log_error(self._rpc.route_name, e.status_code, f"{symbol}: {e.message}")
            return 0.0
        except Exception as e:
            self._logger.log_error(self._rpc.route_name, 500, f"{symbol}: {e}")
            return 0.0
