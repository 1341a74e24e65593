"""Data models for the guild blueprint."""

from __future__ import annotations

from typing import TypedDict


class GuildMember(TypedDict, total=False):
    """A member entry inside the guild settings document."""

    discordName: str
    joinedAt: str


class GuildSettings(TypedDict, total=False):
    """The singleton guild settings document."""

    name: str
    secretKey: str
    leaders: dict[str, bool]
    members: dict[str, GuildMember]
