"""Service layer for tournament business logic."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import (
    DEFAULT_TOURNAMENT_MAX_PARTICIPANTS,
    TOURNAMENTS_COLLECTION,
)
from guildhall.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guildhall.guild.services import GuildService, get_user_characters
from guildhall.utils import now_ms, snapshot_to_dict, stream_documents

from .bracket import (
    Participant,
    advance_winner,
    build_double_elimination,
    build_single_elimination,
    tournament_status,
)
from .models import BRACKET_TYPES, TOURNAMENT_STATUSES, Tournament

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


class TournamentService:
    """Handles business logic and data access for tournaments."""

    @staticmethod
    def _require_leader(uid: str, db: Client) -> None:
        if not GuildService.is_guild_leader(uid, db=db):
            raise PermissionDeniedError("Only guild leaders can manage tournaments.")

    @staticmethod
    def _load(tournament_id: str, db: Client) -> tuple[DocumentReference, Tournament]:
        ref = db.collection(TOURNAMENTS_COLLECTION).document(tournament_id)
        data = snapshot_to_dict(ref.get())
        if data is None:
            raise NotFoundError("Tournament not found.")
        return ref, cast(Tournament, data)

    @staticmethod
    def get_tournament(tournament_id: str, db: Client | None = None) -> Tournament:
        """Fetch a tournament."""
        if db is None:
            db = firestore.client()
        return TournamentService._load(tournament_id, db)[1]

    @staticmethod
    def list_tournaments(
        status: str | None = None, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """List tournaments, newest first, optionally only those in one status."""
        if db is None:
            db = firestore.client()
        query: Any = db.collection(TOURNAMENTS_COLLECTION)
        if status is not None:
            if status not in TOURNAMENT_STATUSES:
                raise ValidationError(f"Unknown tournament status: {status}")
            query = query.where(filter=firestore.FieldFilter("status", "==", status))
        tournaments = stream_documents(query)
        tournaments.sort(key=lambda t: t.get("createdAt", 0), reverse=True)
        return tournaments

    @staticmethod
    def create_tournament(
        name: str,
        owner_uid: str,
        description: str = "",
        max_participants: int = DEFAULT_TOURNAMENT_MAX_PARTICIPANTS,
        db: Client | None = None,
    ) -> str:
        """Create a tournament and return its ID."""
        if db is None:
            db = firestore.client()
        TournamentService._require_leader(owner_uid, db)
        if not name or not name.strip():
            raise ValidationError("A tournament name is required.")
        if max_participants < 2:
            raise ValidationError("A tournament needs room for two participants.")

        payload = {
            "name": name.strip(),
            "description": description,
            "status": "pending",
            "ownerUid": owner_uid,
            "maxParticipants": max_participants,
            "participants": [],
            "matches": [],
            "currentRound": None,
            "champion": None,
            "createdAt": now_ms(),
        }
        _, ref = db.collection(TOURNAMENTS_COLLECTION).add(payload)
        logger.info(f"Tournament {ref.id} created by {owner_uid}")
        return str(ref.id)

    @staticmethod
    def join_tournament(
        tournament_id: str, uid: str, character_id: str, db: Client | None = None
    ) -> Participant:
        """Enter one of the user's characters while sign-ups are open."""
        if db is None:
            db = firestore.client()
        ref, tournament = TournamentService._load(tournament_id, db)
        if tournament.get("status") != "pending":
            raise ValidationError("Sign-ups for this tournament are closed.")

        participants = list(tournament.get("participants") or [])
        if any(p.get("uid") == uid for p in participants):
            raise DuplicateResourceError("You have already joined this tournament.")
        if len(participants) >= tournament.get(
            "maxParticipants", DEFAULT_TOURNAMENT_MAX_PARTICIPANTS
        ):
            raise ValidationError("This tournament is full.")

        character = get_user_characters(db, uid).get(character_id)
        if not character:
            raise ValidationError("Choose one of your own characters.")

        participant = cast(
            Participant,
            {
                "uid": uid,
                "characterId": character_id,
                "characterName": character.get("name", ""),
                "class": character.get("class", ""),
            },
        )
        participants.append(participant)
        ref.update({"participants": participants, "updatedAt": now_ms()})
        return participant

    @staticmethod
    def leave_tournament(tournament_id: str, uid: str, db: Client | None = None) -> None:
        """Withdraw before the bracket is drawn."""
        if db is None:
            db = firestore.client()
        ref, tournament = TournamentService._load(tournament_id, db)
        if tournament.get("status") != "pending":
            raise ValidationError("The bracket has already been drawn.")
        participants = list(tournament.get("participants") or [])
        remaining = [p for p in participants if p.get("uid") != uid]
        if len(remaining) == len(participants):
            raise NotFoundError("You are not in this tournament.")
        ref.update({"participants": remaining, "updatedAt": now_ms()})

    @staticmethod
    def generate_bracket(
        tournament_id: str,
        bracket_type: str,
        requester_uid: str,
        db: Client | None = None,
        rng: random.Random | None = None,
    ) -> Tournament:
        """Shuffle the participants and draw a single or double bracket."""
        if db is None:
            db = firestore.client()
        TournamentService._require_leader(requester_uid, db)
        if bracket_type not in BRACKET_TYPES:
            raise ValidationError(f"Unknown bracket type: {bracket_type}")
        ref, tournament = TournamentService._load(tournament_id, db)
        if tournament.get("status") != "pending":
            raise ValidationError("Reset the tournament before drawing a new bracket.")

        seeds = list(tournament.get("participants") or [])
        (rng or random).shuffle(seeds)
        if bracket_type == "double":
            matches = build_double_elimination(seeds)
        else:
            matches = build_single_elimination(seeds)

        updates = {
            "bracketType": bracket_type,
            "matches": matches,
            "status": "active",
            "currentRound": 1,
            "champion": None,
            "updatedAt": now_ms(),
        }
        ref.update(updates)
        logger.info(
            f"{bracket_type.title()} bracket drawn for tournament {tournament_id} "
            f"with {len(seeds)} participants"
        )
        return cast(Tournament, {**tournament, **updates})

    @staticmethod
    def reset_bracket(
        tournament_id: str, requester_uid: str, db: Client | None = None
    ) -> None:
        """Throw away the bracket and reopen sign-ups."""
        if db is None:
            db = firestore.client()
        TournamentService._require_leader(requester_uid, db)
        ref, _ = TournamentService._load(tournament_id, db)
        ref.update(
            {
                "matches": [],
                "status": "pending",
                "currentRound": None,
                "champion": None,
                "updatedAt": now_ms(),
            }
        )

    @staticmethod
    def record_winner(
        tournament_id: str,
        match_id: str,
        slot: str,
        requester_uid: str,
        db: Client | None = None,
    ) -> Tournament:
        """Declare the player in ``slot`` the winner of a match."""
        if db is None:
            db = firestore.client()
        TournamentService._require_leader(requester_uid, db)
        if slot not in ("player1", "player2"):
            raise ValidationError("Winner must be player1 or player2.")
        ref, tournament = TournamentService._load(tournament_id, db)
        if tournament.get("status") != "active":
            raise ValidationError("This tournament is not being played.")

        matches = list(tournament.get("matches") or [])
        match = next((m for m in matches if m.get("id") == match_id), None)
        if match is None:
            raise NotFoundError("Match not found.")
        winner = match.get(slot)  # type: ignore[misc]
        if winner is None:
            raise ValidationError("There is no player in that slot.")

        matches = advance_winner(matches, match_id, winner)
        state = tournament_status(matches)
        updates: dict[str, Any] = {
            "matches": matches,
            "currentRound": state["currentRound"],
            "updatedAt": now_ms(),
        }
        if state["status"] == "completed":
            updates["status"] = "ended"
            updates["champion"] = state["champion"]
            logger.info(f"Tournament {tournament_id} ended")
        ref.update(updates)
        return cast(Tournament, {**tournament, **updates})

    @staticmethod
    def delete_tournament(
        tournament_id: str, requester_uid: str, db: Client | None = None
    ) -> None:
        """Delete a tournament document."""
        if db is None:
            db = firestore.client()
        TournamentService._require_leader(requester_uid, db)
        ref, _ = TournamentService._load(tournament_id, db)
        ref.delete()
