"""Data models for the donation blueprint."""

from __future__ import annotations

from typing import Literal, TypedDict

DonationKind = Literal["gold", "cash"]
DonationStatus = Literal["waiting", "active", "rejected"]


class Donation(TypedDict, total=False):
    """A gold or cash donation waiting for a leader's review."""

    id: str
    userId: str
    discordName: str
    amount: int
    status: DonationStatus
    type: DonationKind
    characters: list[dict[str, str]]
    paymentMethod: str
    createdAt: int
    approvedAt: int
    approvedBy: str
