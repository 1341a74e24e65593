"""Data models for the feed blueprint."""

from __future__ import annotations

from typing import Any, Literal, TypedDict

FeedType = Literal["gold", "item", "loan", "donate"]

FEED_TYPES = ("gold", "item", "loan", "donate")


class Feed(TypedDict, total=False):
    """An activity record shown in the guild feed."""

    type: FeedType
    subType: str
    text: str
    # "from" is a keyword, so producers build these records as plain dicts
    to: str
    relatedId: str
    timestamp: int
    merchantName: str
    merchantDiscord: str
    source: dict[str, Any]
    borrower: dict[str, Any]
    amount: int
    status: str
    createdAt: int
    updatedAt: int


class FeedFilters(TypedDict, total=False):
    """Optional filters for listing the feed."""

    type: FeedType
    start_date: int
    end_date: int
