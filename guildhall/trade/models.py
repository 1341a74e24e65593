"""Data models for the trade blueprint."""

from __future__ import annotations

from typing import Literal, TypedDict

TradeStatus = Literal["open", "closed"]
ConfirmStatus = Literal["waiting", "done", "cancelled"]
ItemStatus = Literal["available", "sold"]

ITEM_STATUSES = ("available", "sold")


class Merchant(TypedDict, total=False):
    """A member registered as a gold merchant."""

    uid: str
    discordName: str
    name: str
    description: str
    goldAvailable: int
    createdAt: int
    updatedAt: int


class TradeConfirm(TypedDict, total=False):
    """A buyer's reservation against a gold trade."""

    confirmId: str
    buyerUid: str
    buyerName: str
    amount: int
    status: ConfirmStatus
    confirmedAt: int
    updatedAt: int


class GoldTrade(TypedDict, total=False):
    """Gold a merchant offers for sale."""

    tradeId: str
    merchantId: str
    merchantName: str
    amount: int
    amountLeft: int
    pricePer100: float
    status: TradeStatus
    confirms: dict[str, TradeConfirm]
    createdAt: int
    updatedAt: int


class TradeItem(TypedDict, total=False):
    """An item listed by a merchant."""

    itemId: str
    sellerId: str
    sellerName: str
    name: str
    description: str
    price: float
    status: ItemStatus
    createdAt: int
    updatedAt: int
