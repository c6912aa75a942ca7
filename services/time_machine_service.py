"""Time machine analysis backed by live Jupiter prices."""

import random
from typing import Any

from core.exceptions import GatewayError
from core.protocols import RequestLogger
from core.time_machine import TimeMachineAnalysis, analyze
from services.targets import JupiterTarget
from services.upstream import UpstreamClient


class TimeMachineService:
    """Replay a strategy against the current SOL price."""

    def __init__(
        self,
        upstream: UpstreamClient,
        jupiter: JupiterTarget,
        logger: RequestLogger,
        rng: random.Random | None = None,
    ) -> None:
        self._upstream = upstream
        self._jupiter = jupiter
        self._logger = logger
        self._rng = rng or random.Random()

    async def current_sol_price(self) -> float:
        """Current SOL price in USD, or 0.0 when it cannot be determined."""
        payload = await self._upstream.fetch_json(self._jupiter.prepare_price(ids="SOL"))
        return _price_of(payload, "SOL")

    async def run(
        self,
        strategy: str,
        amount: float,
        days_ago: float,
    ) -> TimeMachineAnalysis | None:
        """Run the analysis; None when no usable price is available."""
        try:
            price = await self.current_sol_price()
        except GatewayError as e:
            self._logger.log_error("Time Machine", e.status_code, e.message)
            return None
        if price <= 0:
            self._logger.log_error("Time Machine", 500, "Failed to fetch current SOL price")
            return None
        return analyze(strategy, amount, days_ago, price, self._rng)


def _price_of(payload: Any, symbol: str) -> float:
    try:
        price = payload["data"][symbol]["price"]
    except (KeyError, TypeError):
        return 0.0
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return 0.0
    return float(price)
