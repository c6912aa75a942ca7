"""Yield pool ranking over DefiLlama pool listings."""

from typing import Any

TOP_POOLS = 5


def extract_pools(payload: Any) -> list[dict[str, Any]]:
    """Pull the pool list out of a DefiLlama response (`data` or `pools`)."""
    if not isinstance(payload, dict):
        return []
    pools = payload.get("data") or payload.get("pools") or []
    if not isinstance(pools, list):
        return []
    return [p for p in pools if isinstance(p, dict)]


def rank_pools(
    pools: list[dict[str, Any]],
    asset: str = "",
    chain: str = "",
    *,
    limit: int = TOP_POOLS,
) -> list[dict[str, Any]]:
    """Filter pools by asset/chain, sort by APY then TVL, project the top entries.

    `asset` is a case-insensitive substring match on `symbol`, `chain` an
    exact case-insensitive match. Empty filters match everything.
    """
    asset = asset.strip().lower()
    chain = chain.strip().lower()

    filtered = [
        p
        for p in pools
        if (not asset or asset in _text(p.get("symbol")).lower())
        and (not chain or _text(p.get("chain")).lower() == chain)
    ]
    filtered.sort(key=lambda p: (_apy(p), _number(p.get("tvlUsd"))), reverse=True)
    return [_project(p) for p in filtered[:limit]]


def _project(pool: dict[str, Any]) -> dict[str, Any]:
    apy = pool.get("apy")
    return {
        "project": pool.get("project"),
        "chain": pool.get("chain"),
        "symbol": pool.get("symbol"),
        "apy": apy if apy is not None else pool.get("apyBase"),
        "apyBase": pool.get("apyBase"),
        "apyReward": pool.get("apyReward"),
        "tvlUsd": pool.get("tvlUsd"),
        "pool": pool.get("pool"),
        "url": pool.get("url") or None,
    }


def _apy(pool: dict[str, Any]) -> float:
    apy = _number(pool.get("apy"))
    return apy if apy else _number(pool.get("apyBase"))


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    # NaN would poison the sort order
    return number if number == number else 0.0


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""
