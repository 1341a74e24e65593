"""Data models for the split blueprint."""

from __future__ import annotations

from typing import TypedDict


class BillItem(TypedDict):
    """A looted item and the gold it sold for."""

    name: str
    price: int


class BillParticipant(TypedDict, total=False):
    """A character taking a share of the bill."""

    characterId: str
    name: str
    level: int
    discordName: str
    paid: bool


class Bill(TypedDict, total=False):
    """A split bill document."""

    id: str
    title: str
    serviceFee: int
    ownerUid: str
    ownerCharacterId: str
    createdAt: int
    expiresAt: int
    participants: dict[str, BillParticipant]
    items: dict[str, BillItem]
