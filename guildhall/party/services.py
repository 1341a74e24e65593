"""Service layer for nest parties."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import PARTIES_COLLECTION
from guildhall.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guildhall.guild.services import get_discord_name, get_user_characters
from guildhall.utils import now_ms, snapshot_to_dict, stream_documents

from .models import (
    AVERAGED_STATS,
    DEFAULT_GOALS,
    GOAL_FIELDS,
    NESTS,
    Party,
    PartyMember,
    max_members_for_nest,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


def _ordered_members(party: Party) -> list[tuple[str, PartyMember]]:
    members = party.get("members") or {}
    return sorted(
        members.items(), key=lambda item: (item[1].get("joinedAt", 0), item[0])
    )


class PartyService:
    """Handles parties and the characters in them."""

    @staticmethod
    def _load(party_id: str, db: Client) -> tuple[DocumentReference, Party]:
        ref = db.collection(PARTIES_COLLECTION).document(party_id)
        data = snapshot_to_dict(ref.get())
        if data is None:
            raise NotFoundError("Party not found.")
        return ref, cast(Party, data)

    @staticmethod
    def _require_leader(party: Party, uid: str) -> None:
        if party.get("leader") != uid:
            raise PermissionDeniedError("Only the party leader can do that.")

    @staticmethod
    def _own_character(uid: str, character_id: str, db: Client) -> dict[str, Any]:
        character = get_user_characters(db, uid).get(character_id)
        if character is None:
            raise NotFoundError("Character not found.")
        return character

    @staticmethod
    def _parties_with(
        uid: str, character_id: str, db: Client, nest: str | None = None
    ) -> list[tuple[DocumentReference, Party]]:
        query: Any = db.collection(PARTIES_COLLECTION).where(
            filter=firestore.FieldFilter(f"members.{character_id}.userId", "==", uid)
        )
        if nest is not None:
            query = query.where(filter=firestore.FieldFilter("nest", "==", nest))
        found = []
        for doc in query.stream():
            data = snapshot_to_dict(doc)
            if data is not None:
                found.append((doc.reference, cast(Party, data)))
        return found

    @staticmethod
    def _remove_member(
        ref: DocumentReference, party: Party, character_id: str
    ) -> Party | None:
        """Drop a character; empty parties are deleted and leadership moves on.

        Returns the updated party, or None when it was deleted.
        """
        members = dict(party.get("members") or {})
        leaving = members.pop(character_id, None)
        if not members:
            ref.delete()
            logger.info(f"Party {party.get('id')} deleted after its last member left")
            return None

        changes: dict[str, Any] = {"members": members, "updatedAt": now_ms()}
        leader = party.get("leader")
        if leaving and leaving.get("userId") == leader:
            remaining = _ordered_members(cast(Party, {"members": members}))
            if not any(m.get("userId") == leader for _, m in remaining):
                changes["leader"] = remaining[0][1]["userId"]
        ref.update(changes)
        return cast(Party, {**party, **changes})

    @staticmethod
    def _leave_nest(
        uid: str, character_id: str, nest: str, db: Client, keep: str | None = None
    ) -> None:
        """A character sits in one party per nest; drop it from the others."""
        for ref, party in PartyService._parties_with(uid, character_id, db, nest=nest):
            if party.get("id") != keep:
                PartyService._remove_member(ref, party, character_id)

    @staticmethod
    def get_party(party_id: str, db: Client | None = None) -> Party:
        """Fetch a party."""
        if db is None:
            db = firestore.client()
        return PartyService._load(party_id, db)[1]

    @staticmethod
    def list_parties(
        nest: str | None = None, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """List parties, newest first, optionally for one nest."""
        if db is None:
            db = firestore.client()
        query: Any = db.collection(PARTIES_COLLECTION)
        if nest is not None:
            if nest not in NESTS:
                raise ValidationError(f"Unknown nest: {nest}")
            query = query.where(filter=firestore.FieldFilter("nest", "==", nest))
        parties = stream_documents(query)
        for party in parties:
            party["memberCount"] = len(party.get("members") or {})
        parties.sort(key=lambda p: p.get("createdAt", 0), reverse=True)
        return parties

    @staticmethod
    def create_party(
        uid: str,
        character_id: str,
        nest: str,
        name: str | None = None,
        db: Client | None = None,
    ) -> Party:
        """Open a party for a nest with the given character as its first member."""
        if db is None:
            db = firestore.client()
        if nest not in NESTS:
            raise ValidationError(f"Unknown nest: {nest}")
        character = PartyService._own_character(uid, character_id, db)
        PartyService._leave_nest(uid, character_id, nest, db)

        now = now_ms()
        party: dict[str, Any] = {
            "name": (name or "").strip() or f"{character.get('name', '')}'s Party",
            "nest": nest,
            "leader": uid,
            "createdBy": uid,
            "createdAt": now,
            "maxMember": max_members_for_nest(nest),
            "members": {character_id: {"userId": uid, "joinedAt": now}},
            "goals": dict(DEFAULT_GOALS),
        }
        _, ref = db.collection(PARTIES_COLLECTION).add(party)
        party["id"] = ref.id
        logger.info(f"Party {ref.id} opened by {uid} for {nest}")
        return cast(Party, party)

    @staticmethod
    def join_party(
        party_id: str, uid: str, character_id: str, db: Client | None = None
    ) -> Party:
        """Add one of the user's characters to a party."""
        if db is None:
            db = firestore.client()
        ref, party = PartyService._load(party_id, db)
        PartyService._own_character(uid, character_id, db)

        members = dict(party.get("members") or {})
        if character_id in members:
            raise DuplicateResourceError("This character is already in the party.")
        if any(m.get("userId") == uid for m in members.values()):
            raise ValidationError("You already have a character in this party.")
        capacity = party.get("maxMember") or max_members_for_nest(party.get("nest"))
        if len(members) >= capacity:
            raise ValidationError("This party is full.")

        if party.get("nest"):
            PartyService._leave_nest(
                uid, character_id, party["nest"], db, keep=party.get("id")
            )
        members[character_id] = {"userId": uid, "joinedAt": now_ms()}
        changes = {"members": members, "updatedAt": now_ms()}
        ref.update(changes)
        return cast(Party, {**party, **changes})

    @staticmethod
    def leave_party(
        party_id: str, uid: str, character_id: str, db: Client | None = None
    ) -> Party | None:
        """Take a character out of a party; returns None if the party closed."""
        if db is None:
            db = firestore.client()
        ref, party = PartyService._load(party_id, db)
        member = (party.get("members") or {}).get(character_id)
        if member is None or member.get("userId") != uid:
            raise NotFoundError("Your character is not in this party.")
        return PartyService._remove_member(ref, party, character_id)

    @staticmethod
    def kick_member(
        party_id: str, leader_uid: str, character_id: str, db: Client | None = None
    ) -> Party | None:
        """Leader removes another member's character."""
        if db is None:
            db = firestore.client()
        ref, party = PartyService._load(party_id, db)
        PartyService._require_leader(party, leader_uid)
        member = (party.get("members") or {}).get(character_id)
        if member is None:
            raise NotFoundError("That character is not in this party.")
        if member.get("userId") == leader_uid:
            raise ValidationError("Leave the party instead of kicking yourself.")
        return PartyService._remove_member(ref, party, character_id)

    @staticmethod
    def update_goals(
        party_id: str, uid: str, goals: dict[str, Any], db: Client | None = None
    ) -> dict[str, float]:
        """Leader sets the stat targets for the party."""
        if db is None:
            db = firestore.client()
        ref, party = PartyService._load(party_id, db)
        PartyService._require_leader(party, uid)

        merged = dict(party.get("goals") or DEFAULT_GOALS)
        for key, value in goals.items():
            if key not in GOAL_FIELDS:
                raise ValidationError(f"Unknown goal: {key}")
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{key} must be a number.")
            if value < 0:
                raise ValidationError(f"{key} cannot be negative.")
            merged[key] = value
        ref.update({"goals": merged, "updatedAt": now_ms()})
        return merged

    @staticmethod
    def rename_party(
        party_id: str, uid: str, name: str, db: Client | None = None
    ) -> Party:
        """Leader renames the party."""
        if db is None:
            db = firestore.client()
        ref, party = PartyService._load(party_id, db)
        PartyService._require_leader(party, uid)
        name = (name or "").strip()
        if not name:
            raise ValidationError("A party name is required.")
        changes = {"name": name, "updatedAt": now_ms()}
        ref.update(changes)
        return cast(Party, {**party, **changes})

    @staticmethod
    def delete_party(party_id: str, uid: str, db: Client | None = None) -> None:
        """Leader disbands the party."""
        if db is None:
            db = firestore.client()
        ref, party = PartyService._load(party_id, db)
        PartyService._require_leader(party, uid)
        ref.delete()
        logger.info(f"Party {party_id} disbanded by {uid}")

    @staticmethod
    def remove_character(uid: str, character_id: str, db: Client | None = None) -> int:
        """Take a character out of every party it is in; returns the count."""
        if db is None:
            db = firestore.client()
        parties = PartyService._parties_with(uid, character_id, db)
        for ref, party in parties:
            PartyService._remove_member(ref, party, character_id)
        return len(parties)

    @staticmethod
    def member_details(party: Party, db: Client | None = None) -> list[dict[str, Any]]:
        """Members in join order with their character and Discord name."""
        if db is None:
            db = firestore.client()
        details = []
        characters_by_user: dict[str, dict[str, Any]] = {}
        for character_id, member in _ordered_members(party):
            user_id = member.get("userId", "")
            if user_id not in characters_by_user:
                characters_by_user[user_id] = get_user_characters(db, user_id)
            character = characters_by_user[user_id].get(character_id) or {}
            details.append(
                {
                    "characterId": character_id,
                    "userId": user_id,
                    "joinedAt": member.get("joinedAt"),
                    "discordName": get_discord_name(db, user_id, fallback=user_id),
                    "name": character.get("name", ""),
                    "class": character.get("class", ""),
                    "mainClass": character.get("mainClass", ""),
                    "stats": character.get("stats") or {},
                }
            )
        return details

    @staticmethod
    def average_stats(members: list[dict[str, Any]]) -> dict[str, int]:
        """Per-member average of the combat stats, rounded half up."""
        if not members:
            return {name: 0 for name in AVERAGED_STATS}
        count = len(members)
        return {
            name: int(
                sum((m.get("stats") or {}).get(name, 0) or 0 for m in members) / count
                + 0.5
            )
            for name in AVERAGED_STATS
        }

    @staticmethod
    def invite_text(
        party: dict[str, Any],
        members: list[dict[str, Any]],
        message: str = "",
        link: str = "",
    ) -> str:
        """Build the Discord invite for a party."""
        lines = [
            "📢 Party call!",
            "",
            f"🧩 Party Name: {party.get('name', '')}",
            f"🏰 Nest: {party.get('nest', '')}",
            "",
            "👥 Members:",
        ]
        lines += [f"- @{m['discordName']} ({m['class']})" for m in members]
        lines += ["", "🕒 Message:", f'"{message or "Ready! Come on in!"}"']
        if link:
            lines += ["", "📎 Join here:", link]
        return "\n".join(lines)
