"""Utility functions for splitting bills."""

from __future__ import annotations

import math
from typing import Any, Iterable

from guildhall.core.constants import (
    CASH_PER_BAHT,
    CASH_PER_STAMP,
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_MINUTE,
)
from guildhall.utils import now_ms


def _price(item: Any) -> float:
    if isinstance(item, dict):
        return item.get("price") or 0
    return item or 0


def calculate_split(items: Iterable[Any], fee: float, count: int) -> int:
    """Return each participant's share of the items after the service fee.

    Items may be dicts carrying a ``price`` or plain numbers. The share is
    floored, so the remainder stays with the bill owner.
    """
    if count <= 0:
        return 0
    total = sum(_price(item) for item in items)
    net = max(total - fee, 0)
    return int(math.floor(net / count))


def format_gold(amount: float) -> str:
    """Format gold with thousands separators."""
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def get_time_remaining(expires_at: int, now: int | None = None) -> dict[str, int]:
    """Split the time left before expires_at into days, hours and minutes."""
    if now is None:
        now = now_ms()
    diff = expires_at - now
    if diff <= 0:
        return {"days": 0, "hours": 0, "minutes": 0}
    return {
        "days": diff // MS_PER_DAY,
        "hours": (diff % MS_PER_DAY) // MS_PER_HOUR,
        "minutes": (diff % MS_PER_HOUR) // MS_PER_MINUTE,
    }


def is_expiring_soon(expires_at: int, now: int | None = None) -> bool:
    """True when less than a day is left (or the bill already expired)."""
    remaining = get_time_remaining(expires_at, now)
    return remaining["days"] == 0 and remaining["hours"] < 24


def is_expired(expires_at: int, now: int | None = None) -> bool:
    """True once expires_at has passed."""
    if now is None:
        now = now_ms()
    return expires_at <= now


def gold_from_stamps(stamps: float, gold_rate: float) -> dict[str, float]:
    """Convert stamps to cash, baht and gold at the given baht-per-gold rate."""
    if stamps <= 0 or gold_rate <= 0:
        return {"cash": 0.0, "baht": 0.0, "gold": 0.0}
    cash = stamps * CASH_PER_STAMP
    baht = cash / CASH_PER_BAHT
    return {
        "cash": round(cash, 2),
        "baht": round(baht, 2),
        "gold": round(baht / gold_rate, 2),
    }
