"""Request validation for write-style endpoints."""

import math
import numbers
from typing import Any

from core.exceptions import InvalidRequest

STRATEGIES = ("stake", "swap", "lp")
MIN_DAYS_AGO = 1
MAX_DAYS_AGO = 365


def require_params(params: dict[str, str | None], *names: str) -> None:
    """Raise InvalidRequest when any named query param is missing or empty."""
    missing = [name for name in names if not params.get(name)]
    if missing:
        label = "param" if len(missing) == 1 else "params"
        raise InvalidRequest(f"Missing required {label}: {', '.join(missing)}")


def validate_swap_body(body: Any) -> dict[str, Any]:
    """Validate a Jupiter swap build request and apply defaults."""
    if not isinstance(body, dict) or not body.get("quoteResponse") or not body.get("userPublicKey"):
        raise InvalidRequest("Missing quoteResponse or userPublicKey")

    wrap = body.get("wrapAndUnwrapSol")
    legacy = body.get("asLegacyTransaction")
    return {
        "quoteResponse": body["quoteResponse"],
        "userPublicKey": body["userPublicKey"],
        "wrapAndUnwrapSol": True if wrap is None else wrap,
        "asLegacyTransaction": False if legacy is None else legacy,
    }


def validate_time_machine_body(body: Any) -> tuple[str, float, float]:
    """Validate a time machine request, returning (strategy, amount, days_ago)."""
    if not isinstance(body, dict):
        body = {}

    strategy = body.get("strategy")
    if strategy not in STRATEGIES:
        raise InvalidRequest("Invalid strategy. Must be stake, swap, or lp")

    amount = body.get("amount")
    if not _is_number(amount) or amount <= 0:
        raise InvalidRequest("Invalid amount. Must be greater than 0")

    days_ago = body.get("daysAgo")
    if not _is_number(days_ago) or not MIN_DAYS_AGO <= days_ago <= MAX_DAYS_AGO:
        raise InvalidRequest(
            f"Invalid days ago. Must be between {MIN_DAYS_AGO} and {MAX_DAYS_AGO}"
        )

    return strategy, amount, days_ago


def _is_number(value: Any) -> bool:
    # bool is an int subclass; JSON true/false are not amounts
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)
