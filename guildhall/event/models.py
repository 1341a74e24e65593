"""Data models for the event blueprint."""

from __future__ import annotations

from typing import TypedDict

from guildhall.core.types import FirestoreDocument


class GuildEvent(FirestoreDocument, total=False):
    """A guild activity members can sign up for."""

    name: str
    description: str
    startAt: int
    endAt: int
    rewardInfo: str
    notifyMessage: str
    color: str
    ownerUid: str
    isEnded: bool
    endedAt: int
    discordAnnounceMessage: str


class EventParticipant(TypedDict, total=False):
    """A document in events/{id}/participants, keyed by user id."""

    uid: str
    discordName: str
    joinedAt: int
    rewardGiven: bool
    rewardNote: str
