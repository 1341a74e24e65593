"""Data models for the tournament blueprint."""

from __future__ import annotations

from typing import Literal, Optional

from guildhall.core.types import FirestoreDocument

from .bracket import Match, Participant

TournamentStatus = Literal["pending", "active", "ended"]
BracketType = Literal["single", "double"]

BRACKET_TYPES = ("single", "double")
TOURNAMENT_STATUSES = ("pending", "active", "ended")


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    description: str
    status: TournamentStatus
    ownerUid: str
    maxParticipants: int
    participants: list[Participant]
    bracketType: BracketType
    matches: list[Match]
    currentRound: Optional[int]
    champion: Optional[Participant]
