"""Data models for the party blueprint."""

from __future__ import annotations

from typing import TypedDict

from guildhall.core.types import FirestoreDocument

NESTS = (
    "Cerberus Hell",
    "Cerberus Challenge",
    "Manticore Hell",
    "Apocalypse Hell",
    "Sea Dragon",
    "Chaos Rift Kamala",
    "Chaos Rift Bairra",
    "Banquet Hall",
    "Jealous Albeuteur",
    "Theme Park",
)

DEFAULT_MAX_MEMBERS = 4
NEST_MAX_MEMBERS = {"Sea Dragon": 8}

GOAL_FIELDS = ("atk", "hp", "def", "cri", "ele", "fd")
DEFAULT_GOALS = {"atk": 0, "hp": 0, "def": 0, "cri": 0}

# Stats averaged over the party's characters
AVERAGED_STATS = ("atk", "hp", "pdef", "mdef", "cri", "ele", "fd")


def max_members_for_nest(nest: str | None) -> int:
    """Party size allowed in a nest."""
    return NEST_MAX_MEMBERS.get(nest or "", DEFAULT_MAX_MEMBERS)


class PartyMember(TypedDict):
    """An entry in a party's members map, keyed by character id."""

    userId: str
    joinedAt: int


class Party(FirestoreDocument, total=False):
    """A party document in Firestore."""

    name: str
    leader: str
    createdBy: str
    maxMember: int
    members: dict[str, PartyMember]
    goals: dict[str, float]
    nest: str
