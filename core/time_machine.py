"""Historical "what-if" analysis for staking, swapping and LP strategies."""

import random
from dataclasses import dataclass
from typing import Any

DAYS_IN_YEAR = 365
STAKING_APY = 0.07
LP_APR = 0.20
LP_IMPERMANENT_LOSS = 0.93


@dataclass(frozen=True)
class TimeMachineAnalysis:
    """Outcome of replaying a strategy from `days_ago` until now."""

    strategy: str
    amount: float
    days_ago: float
    historical_price: float
    current_price: float
    returns: float
    returns_percent: float
    vs_hodl: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy,
            "amount": self.amount,
            "daysAgo": self.days_ago,
            "historicalPrice": self.historical_price,
            "currentPrice": self.current_price,
            "returns": self.returns,
            "returnsPercent": self.returns_percent,
            "vsHODL": self.vs_hodl,
        }


def simulate_historical_price(current_price: float, rng: random.Random) -> float:
    """Approximate a past SOL price between 15% below and 5% above today's."""
    variation = 1 - (rng.random() * 0.2 - 0.05)
    return current_price * variation


def strategy_final_value(
    strategy: str,
    amount: float,
    days_ago: float,
    historical_price: float,
    current_price: float,
) -> float:
    """Value today of `amount` SOL put into `strategy` `days_ago` days ago."""
    if strategy == "stake":
        return amount * (1 + STAKING_APY) ** (days_ago / DAYS_IN_YEAR)
    if strategy == "swap":
        # SOL -> USDC at the historical price, back to SOL at today's price
        return amount * historical_price / current_price
    if strategy == "lp":
        lp_return = amount * (1 + LP_APR * days_ago / DAYS_IN_YEAR)
        return lp_return * LP_IMPERMANENT_LOSS
    raise ValueError(f"Unknown strategy: {strategy}")


def analyze(
    strategy: str,
    amount: float,
    days_ago: float,
    current_price: float,
    rng: random.Random | None = None,
) -> TimeMachineAnalysis:
    """Compare a strategy's outcome against simply holding SOL."""
    if current_price <= 0:
        raise ValueError("Current SOL price must be positive")

    historical_price = simulate_historical_price(current_price, rng or random.Random())
    final_value = strategy_final_value(
        strategy, amount, days_ago, historical_price, current_price
    )

    returns = final_value - amount
    hodl_value = amount * (current_price / historical_price)
    return TimeMachineAnalysis(
        strategy=strategy,
        amount=amount,
        days_ago=days_ago,
        historical_price=historical_price,
        current_price=current_price,
        returns=returns,
        returns_percent=returns / amount * 100,
        vs_hodl=(final_value - hodl_value) / hodl_value * 100,
    )
