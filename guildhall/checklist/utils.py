"""Reset schedule for checklists.

Resets follow Thai time (UTC+7): the daily checklist clears at 08:00 every
day and the weekly one at 08:00 on Saturday. A reset is due once the most
recent reset boundary is later than the stored reset time.
"""

from __future__ import annotations

import datetime
import logging

logger = logging.getLogger(__name__)

THAI_TZ = datetime.timezone(datetime.timedelta(hours=7), "ICT")
DAILY_RESET_HOUR = 8
WEEKLY_RESET_HOUR = 8
WEEKLY_RESET_WEEKDAY = 5  # Saturday


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def iso_timestamp(moment: datetime.datetime | None = None) -> str:
    """Format a moment the way reset times are stored."""
    if moment is None:
        moment = _utcnow()
    return moment.astimezone(datetime.timezone.utc).isoformat()


def parse_timestamp(value: str | None) -> datetime.datetime | None:
    """Read a stored reset time; naive values are taken as UTC."""
    if not value:
        return None
    try:
        moment = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Ignoring unreadable reset time {value!r}")
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return moment


def last_daily_boundary(now: datetime.datetime) -> datetime.datetime:
    """The latest daily reset time at or before ``now``."""
    local = now.astimezone(THAI_TZ)
    boundary = local.replace(hour=DAILY_RESET_HOUR, minute=0, second=0, microsecond=0)
    if local < boundary:
        boundary -= datetime.timedelta(days=1)
    return boundary


def last_weekly_boundary(now: datetime.datetime) -> datetime.datetime:
    """The latest weekly reset time at or before ``now``."""
    local = now.astimezone(THAI_TZ)
    days_back = (local.weekday() - WEEKLY_RESET_WEEKDAY) % 7
    boundary = local.replace(
        hour=WEEKLY_RESET_HOUR, minute=0, second=0, microsecond=0
    ) - datetime.timedelta(days=days_back)
    if local < boundary:
        boundary -= datetime.timedelta(days=7)
    return boundary


def should_reset_daily(
    last_reset: str | None, now: datetime.datetime | None = None
) -> bool:
    """True when the daily checklist has not been cleared since 08:00."""
    last = parse_timestamp(last_reset)
    if last is None:
        return True
    return last < last_daily_boundary(now or _utcnow())


def should_reset_weekly(
    last_reset: str | None, now: datetime.datetime | None = None
) -> bool:
    """True when the weekly checklist has not been cleared since Saturday 08:00."""
    last = parse_timestamp(last_reset)
    if last is None:
        return True
    return last < last_weekly_boundary(now or _utcnow())
